# File: versioninfo/formatting.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

"""
String building for the admin bar, footer and dashboard widget.

Nothing here touches the request, the database or the settings store. The
``escape`` callable is applied to every interpolated value; pass ``str`` to
get the plain text.
"""

from typing import Callable, Iterable, Optional

from django.utils.html import escape as html_escape
from django.utils.translation import gettext as _
from packaging.version import InvalidVersion, Version

from .environment import VersionSnapshot

Escape = Callable[[str], str]


def is_newer_version(candidate: str, current: str) -> bool:
    """Semantic ``candidate > current``; unparsable versions are never newer."""
    try:
        return Version(str(candidate)) > Version(str(current))
    except InvalidVersion:
        return False


def first_newer_update(current: str, updates: Iterable) -> Optional[str]:
    """Version of the first update descriptor newer than ``current``, else None."""
    for update in updates:
        version = getattr(update, "version", None)
        if version and is_newer_version(version, current):
            return str(version)
    return None


def _details(snapshot: VersionSnapshot, escape: Escape, update_suffix: str = "") -> str:
    return _("%(platform)s %(platform_version)s%(update)s | %(runtime)s %(runtime_version)s | "
             "Web Server %(server)s | %(database)s %(database_version)s") % {
        "platform": escape(snapshot.platform_name),
        "platform_version": escape(snapshot.platform_version),
        "update": update_suffix,
        "runtime": escape(snapshot.runtime_name),
        "runtime_version": escape(snapshot.runtime_version),
        "server": escape(snapshot.server_software),
        "database": escape(snapshot.database_name),
        "database_version": escape(snapshot.database_version),
    }


def format_admin_bar_text(snapshot: VersionSnapshot, escape: Escape = html_escape) -> str:
    return _details(snapshot, escape)


def format_update_suffix(version: str, url: str, escape: Escape = html_escape) -> str:
    return ' (<a href="%s">%s %s</a>)' % (escape(url), escape(_("Get Version")), escape(version))


def format_footer_text(snapshot: VersionSnapshot, update_url: str = "", escape: Escape = html_escape) -> str:
    suffix = ""
    if snapshot.update_version:
        suffix = format_update_suffix(snapshot.update_version, update_url, escape)
    return _details(snapshot, escape, suffix)


def format_dashboard_widget(snapshot: VersionSnapshot, escape: Escape = html_escape) -> str:
    rows = [
        (_("%(name)s Version:") % {"name": snapshot.platform_name}, snapshot.platform_version),
        (_("%(name)s Version:") % {"name": snapshot.runtime_name}, snapshot.runtime_version),
        (_("Web Server:"), snapshot.server_software),
        (_("%(name)s Version:") % {"name": snapshot.database_name}, snapshot.database_version),
    ]
    items = "".join(
        "<li><strong>%s</strong> %s</li>" % (escape(label), escape(value))
        for label, value in rows
    )
    return "<ul>%s</ul>" % items
