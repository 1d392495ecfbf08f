# File: core/context_processors.py
# Version: 1.1.0
# Author: vas
# Modified: 2026-10-19

from .chrome import AdminChrome

def admin_chrome(request):
    """Make hook-driven admin furniture (footer, admin bar, widgets) available in all templates."""
    return {
        'admin_chrome': AdminChrome(request),
    }
