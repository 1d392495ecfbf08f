# File: versioninfo/service.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations
import logging
from dataclasses import dataclass
from functools import partial

from django.contrib import admin
from django.db import DatabaseError
from django.shortcuts import render
from django.urls import reverse
from django.utils.safestring import mark_safe
from django.utils.translation import gettext as _
from django.utils.translation import gettext_lazy

from core.nonces import require_nonce
from core.options import options as default_options
from core.signals import admin_bar_menu, admin_init, admin_menu, dashboard_setup, update_footer
from core.updates import UpdateCheckError, get_core_updates, update_core_url
from core.utils.authz import is_administrator

from .environment import DatabaseVersionQuery, EnvironmentReader, VersionSnapshot
from .formatting import (
    first_newer_update,
    format_admin_bar_text,
    format_dashboard_widget,
    format_footer_text,
)

logger = logging.getLogger('versioninfo')

OPTION_GROUP = "version_info_settings_group"
SHOW_FOOTER = "version_info_show_footer"
SHOW_ADMIN_BAR = "version_info_show_admin_bar"
SHOW_DASHBOARD_WIDGET = "version_info_show_dashboard_widget"

DEFAULTS = {
    SHOW_FOOTER: True,
    SHOW_ADMIN_BAR: False,
    SHOW_DASHBOARD_WIDGET: False,
}

SETTINGS_PAGE_SLUG = "version-info-settings"
NONCE_ACTION = "version_info_settings_action"
NONCE_FIELD = "version_info_settings_nonce"
ADMIN_BAR_NODE_ID = "version_info_admin_bar"
DASHBOARD_WIDGET_ID = "version_info_dashboard_widget"

TRUTHY = {"1", "true", "on", "yes"}


def coerce_boolean(value) -> bool:
    """Permissive boolean parsing: "1"/"true"/"on"/"yes"/1/True are True, anything else False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


@dataclass(frozen=True)
class DisplayPreferences:
    show_footer: bool = DEFAULTS[SHOW_FOOTER]
    show_admin_bar: bool = DEFAULTS[SHOW_ADMIN_BAR]
    show_dashboard_widget: bool = DEFAULTS[SHOW_DASHBOARD_WIDGET]


class VersionInfoService:
    """
    Django, Python, web server and database versions for administrators,
    in the admin bar, the admin footer and as a dashboard widget.

    Collaborators are injected so tests can swap them:
        options:     get(name, default) / set(name, value)
        environment: EnvironmentReader
        database:    DatabaseVersionQuery
        updates:     callable returning update descriptors with ``.version``
    """

    def __init__(self, options=None, environment=None, database=None, updates=None):
        self.options = options if options is not None else default_options
        self.environment = environment if environment is not None else EnvironmentReader()
        self.database = database if database is not None else DatabaseVersionQuery()
        self.updates = updates if updates is not None else get_core_updates

    def register(self):
        update_footer.connect(self.version_in_footer, dispatch_uid="versioninfo.update_footer")
        admin_bar_menu.connect(self.add_version_info_to_admin_bar, dispatch_uid="versioninfo.admin_bar_menu")
        admin_menu.connect(self.add_settings_page, dispatch_uid="versioninfo.admin_menu")
        admin_init.connect(self.register_settings, dispatch_uid="versioninfo.admin_init")
        dashboard_setup.connect(self.conditionally_add_dashboard_widget, dispatch_uid="versioninfo.dashboard_setup")

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @staticmethod
    def validate_boolean_option(value) -> bool:
        return coerce_boolean(value)

    def _preference(self, name: str) -> bool:
        return coerce_boolean(self.options.get(name, DEFAULTS[name]))

    def get_preferences(self) -> DisplayPreferences:
        return DisplayPreferences(
            show_footer=self._preference(SHOW_FOOTER),
            show_admin_bar=self._preference(SHOW_ADMIN_BAR),
            show_dashboard_widget=self._preference(SHOW_DASHBOARD_WIDGET),
        )

    def register_settings(self, sender=None, registry=None, **kwargs):
        for name in (SHOW_FOOTER, SHOW_ADMIN_BAR, SHOW_DASHBOARD_WIDGET):
            registry.register_setting(
                OPTION_GROUP, name,
                sanitize_callback=self.validate_boolean_option,
                default=DEFAULTS[name],
            )

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    def _database_version(self) -> str:
        try:
            return self.database.query_version()
        except DatabaseError as e:
            logger.warning(f"Database version query failed: {e}")
            return _("Error fetching version")

    def _update_version(self, current: str):
        try:
            updates = self.updates()
        except UpdateCheckError as e:
            logger.warning(f"Core update check failed: {e}")
            return None
        return first_newer_update(current, updates or [])

    def snapshot(self, request, with_updates: bool = False, raw_database: bool = False) -> VersionSnapshot:
        platform_version = self.environment.platform_version()
        if raw_database:
            database_version = self.database.db_version()
        else:
            database_version = self._database_version()
        return VersionSnapshot(
            platform_version=platform_version,
            runtime_version=self.environment.runtime_version(),
            server_software=self.environment.server_software(request),
            database_version=database_version,
            update_version=self._update_version(platform_version) if with_updates else None,
            platform_name=self.environment.platform_name,
            runtime_name=self.environment.runtime_name,
            database_name=self.database.display_name,
        )

    # ------------------------------------------------------------------
    # Admin bar
    # ------------------------------------------------------------------

    def compute_admin_bar_text(self, request) -> str:
        if not self.get_preferences().show_admin_bar or not is_administrator(request.user):
            return ""
        return mark_safe(format_admin_bar_text(self.snapshot(request)))

    def add_version_info_to_admin_bar(self, sender=None, request=None, admin_bar=None, **kwargs):
        title = self.compute_admin_bar_text(request)
        if not title:
            return
        admin_bar.add_node(id=ADMIN_BAR_NODE_ID, title=title, parent="top-secondary")

    # ------------------------------------------------------------------
    # Footer
    # ------------------------------------------------------------------

    def compute_footer_text(self, request) -> str:
        if not self.get_preferences().show_footer or not is_administrator(request.user):
            return ""
        snapshot = self.snapshot(request, with_updates=True)
        return mark_safe(format_footer_text(snapshot, update_core_url()))

    def version_in_footer(self, sender=None, request=None, **kwargs):
        return self.compute_footer_text(request)

    # ------------------------------------------------------------------
    # Dashboard widget
    # ------------------------------------------------------------------

    def conditionally_add_dashboard_widget(self, sender=None, request=None, dashboard=None, **kwargs):
        if self.get_preferences().show_dashboard_widget and is_administrator(request.user):
            dashboard.add_widget(
                DASHBOARD_WIDGET_ID,
                _("Version Info"),
                partial(self.render_dashboard_widget, request),
            )

    def render_dashboard_widget(self, request) -> str:
        # raw accessor on purpose: no "Error fetching version" substitution here
        return mark_safe(format_dashboard_widget(self.snapshot(request, raw_database=True)))

    # ------------------------------------------------------------------
    # Settings page
    # ------------------------------------------------------------------

    def add_settings_page(self, sender=None, menu=None, **kwargs):
        menu.add_options_page(
            gettext_lazy("Version Info Settings"),
            gettext_lazy("Version Info"),
            "manage_options",
            SETTINGS_PAGE_SLUG,
            self.render_settings_form,
        )

    def render_settings_form(self, request):
        if request.method == "POST":
            require_nonce(request, NONCE_ACTION, NONCE_FIELD)

        prefs = self.get_preferences()
        fields = [
            (SHOW_ADMIN_BAR, _("Show Version Info in Admin Bar"), prefs.show_admin_bar),
            (SHOW_DASHBOARD_WIDGET, _("Show Version Info as Dashboard Widget"), prefs.show_dashboard_widget),
            (SHOW_FOOTER, _("Show Version Info in Footer"), prefs.show_footer),
        ]
        context = {
            **admin.site.each_context(request),
            "title": _("Version Info Settings"),
            "option_group": OPTION_GROUP,
            "nonce_action": NONCE_ACTION,
            "nonce_name": NONCE_FIELD,
            "fields": fields,
            "form_action": reverse("options_save"),
        }
        return render(request, "versioninfo/settings_page.html", context)
