# File: core/signals.py
# Version: 1.1.0
# Author: vas
# Modified: 2026-10-19

"""
Extension points apps can hook into.

Receivers are plain callables connected with ``signal.connect(...)``; use a
``dispatch_uid`` so a second registration is ignored.
"""

from django.dispatch import Signal

# kwargs: request. Receivers return footer text (may be "").
update_footer = Signal()

# kwargs: request, admin_bar (core.chrome.AdminBar)
admin_bar_menu = Signal()

# kwargs: menu (core.chrome.AdminMenu). Sent once per process.
admin_menu = Signal()

# kwargs: registry (core.options.SettingsRegistry). Sent once per process.
admin_init = Signal()

# kwargs: request, dashboard (core.chrome.Dashboard)
dashboard_setup = Signal()
