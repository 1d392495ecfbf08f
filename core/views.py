# File: core/views.py
# Version: 1.1.0
# Author: vas
# Modified: 2026-10-19

import logging

from django.contrib import messages
from django.contrib.admin.views.decorators import staff_member_required
from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.http import Http404, HttpResponseRedirect
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.utils.translation import gettext as _
from django.views.decorators.http import require_http_methods

from .chrome import get_admin_menu
from .nonces import require_nonce
from .options import get_settings_registry, options
from .utils.authz import user_can

admin_logger = logging.getLogger('core.admin')


@staff_member_required
@require_http_methods(["GET", "POST"])
def options_page(request, slug):
    """Serve an options page registered through the ``admin_menu`` signal."""
    page = get_admin_menu().get_page(slug)
    if page is None:
        raise Http404(_("Options page not found."))
    if not user_can(request.user, page.capability):
        raise PermissionDenied(_("Sorry, you are not allowed to access this page."))
    return page.callback(request)


def _redirect_target(request):
    target = request.POST.get('_http_referer') or request.META.get('HTTP_REFERER') or ''
    if not url_has_allowed_host_and_scheme(target, allowed_hosts={request.get_host()},
                                           require_https=request.is_secure()):
        target = reverse('admin:index')
    separator = '&' if '?' in target else '?'
    if 'settings-updated=' not in target:
        target = f"{target}{separator}settings-updated=true"
    return target


@staff_member_required
@require_http_methods(["POST"])
def options_save(request):
    """
    Generic save endpoint for options forms.

    POST params:
        - option_page: settings group rendered by {% settings_fields %}
        - _nonce: token for "<option_page>-options"
        - one value per registered setting in the group (absent = None)
    """
    if not user_can(request.user, 'manage_options'):
        raise PermissionDenied(_("Sorry, you are not allowed to manage options for this site."))

    group = request.POST.get('option_page', '')
    require_nonce(request, f"{group}-options", '_nonce')

    group_settings = get_settings_registry().group(group)
    if not group_settings:
        raise PermissionDenied(_("The %(group)s options page is not in the allowed options list.") % {'group': group})

    with transaction.atomic():
        changed = [
            setting.name
            for setting in group_settings
            if options.set(setting.name, setting.sanitize(request.POST.get(setting.name)))
        ]

    admin_logger.info(
        f"User '{request.user.username}' saved options group '{group}' "
        f"(changed: {', '.join(changed) or 'none'})"
    )
    messages.success(request, _("Settings saved."))
    return HttpResponseRedirect(_redirect_target(request))
