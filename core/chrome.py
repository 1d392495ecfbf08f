# File: core/chrome.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

"""
Admin page furniture assembled from app hooks.

- AdminBar: nodes shown next to the user links (``admin_bar_menu``)
- Dashboard: widgets on the admin index (``dashboard_setup``)
- AdminMenu: options pages under admin/options/<slug>/ (``admin_menu``)

AdminChrome ties them to one request; templates reach it through the
``admin_chrome`` context processor.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import cached_property, lru_cache
from typing import Callable, Dict, List, Optional

from django.urls import reverse
from django.utils.html import conditional_escape
from django.utils.safestring import mark_safe

from .signals import admin_bar_menu, admin_menu, dashboard_setup, update_footer
from .utils.authz import user_can


@dataclass
class AdminBarNode:
    id: str
    title: str
    parent: Optional[str] = None
    href: Optional[str] = None


class AdminBar:
    def __init__(self):
        self._nodes: Dict[str, AdminBarNode] = {}

    def add_node(self, id: str, title, parent: Optional[str] = None, href: Optional[str] = None) -> AdminBarNode:
        node = AdminBarNode(id=id, title=conditional_escape(title), parent=parent, href=href)
        self._nodes[id] = node
        return node

    def remove_node(self, id: str) -> None:
        self._nodes.pop(id, None)

    def get_node(self, id: str) -> Optional[AdminBarNode]:
        return self._nodes.get(id)

    @property
    def nodes(self) -> List[AdminBarNode]:
        return list(self._nodes.values())


@dataclass
class DashboardWidget:
    id: str
    title: str
    callback: Callable[[], str]

    def render(self):
        return conditional_escape(self.callback())


class Dashboard:
    def __init__(self):
        self._widgets: Dict[str, DashboardWidget] = {}

    def add_widget(self, widget_id: str, title, callback) -> DashboardWidget:
        widget = DashboardWidget(id=widget_id, title=title, callback=callback)
        self._widgets[widget_id] = widget
        return widget

    @property
    def widgets(self) -> List[DashboardWidget]:
        return list(self._widgets.values())


@dataclass
class OptionsPage:
    slug: str
    page_title: str
    menu_title: str
    capability: str
    callback: Callable

    @property
    def url(self) -> str:
        return reverse("options_page", args=[self.slug])


class AdminMenu:
    def __init__(self):
        self._pages: Dict[str, OptionsPage] = {}

    def add_options_page(self, page_title, menu_title, capability: str, menu_slug: str, callback) -> OptionsPage:
        page = OptionsPage(
            slug=menu_slug,
            page_title=page_title,
            menu_title=menu_title,
            capability=capability,
            callback=callback,
        )
        self._pages[menu_slug] = page
        return page

    def get_page(self, slug: str) -> Optional[OptionsPage]:
        return self._pages.get(slug)

    def pages_for(self, user) -> List[OptionsPage]:
        return [p for p in self._pages.values() if user_can(user, p.capability)]


@lru_cache(maxsize=1)
def get_admin_menu() -> AdminMenu:
    menu = AdminMenu()
    admin_menu.send(sender=AdminMenu, menu=menu)
    return menu


def refresh_admin_menu() -> None:
    get_admin_menu.cache_clear()


class AdminChrome:
    """Lazily built hook output for one request."""

    def __init__(self, request):
        self.request = request

    @cached_property
    def footer_text(self):
        parts = []
        for receiver, response in update_footer.send(sender=AdminChrome, request=self.request):
            if response:
                parts.append(conditional_escape(response))
        return mark_safe(" ".join(parts))

    @cached_property
    def admin_bar(self) -> AdminBar:
        bar = AdminBar()
        admin_bar_menu.send(sender=AdminChrome, request=self.request, admin_bar=bar)
        return bar

    @cached_property
    def dashboard_widgets(self) -> List[DashboardWidget]:
        dashboard = Dashboard()
        dashboard_setup.send(sender=AdminChrome, request=self.request, dashboard=dashboard)
        return dashboard.widgets

    @cached_property
    def options_pages(self) -> List[OptionsPage]:
        return get_admin_menu().pages_for(getattr(self.request, "user", None))
