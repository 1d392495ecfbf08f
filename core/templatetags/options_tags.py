# File: core/templatetags/options_tags.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from django import template
from django.utils.html import format_html

from core.nonces import create_nonce

register = template.Library()


@register.simple_tag(takes_context=True)
def settings_fields(context, group):
    """
    Hidden fields the options endpoint needs to save a settings group.

    Usage:
        {% load options_tags %}
        <form method="post" action="{% url 'options_save' %}">
          {% csrf_token %}
          {% settings_fields "my_settings_group" %}
          ...
    """
    request = context["request"]
    return format_html(
        '<input type="hidden" name="option_page" value="{}">'
        '<input type="hidden" name="action" value="update">'
        '<input type="hidden" name="_nonce" value="{}">'
        '<input type="hidden" name="_http_referer" value="{}">',
        group,
        create_nonce(request, f"{group}-options"),
        request.get_full_path(),
    )


@register.simple_tag(takes_context=True)
def nonce_field(context, action, name="_nonce"):
    """
    Usage:
        {% nonce_field "my_action" "my_nonce" %}
    """
    return format_html(
        '<input type="hidden" id="{}" name="{}" value="{}">',
        name, name, create_nonce(context["request"], action),
    )
