# File: core/admin.py
# Version: 1.1.0
# Author: vas
# Modified: 2026-10-19

from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from .models import Option
from .utils.authz import is_administrator


@admin.register(Option)
class OptionAdmin(SimpleHistoryAdmin):
    """
    Raw view on stored options. Apps edit their keys through their own
    options pages; this is for inspection and history.
    """
    list_display = ('name', 'value', 'updated_at')
    search_fields = ('name',)
    readonly_fields = ('updated_at',)

    def has_module_permission(self, request):
        return is_administrator(request.user)

    def has_view_permission(self, request, obj=None):
        return is_administrator(request.user)

    def has_change_permission(self, request, obj=None):
        return is_administrator(request.user)

    def has_add_permission(self, request):
        return is_administrator(request.user)

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser
