"""
URL configuration for config project.

Options pages registered through core's ``admin_menu`` signal live under
admin/options/<slug>/ and save through admin/options/.
"""
# File: config/urls.py
# Version: 1.1.0
# Author: vas
# Modified: 2026-10-19

from django.contrib import admin
from django.urls import path, include
from core import views as core_views

admin.site.index_title = "Dashboard"

urlpatterns = [
    path('i18n/', include('django.conf.urls.i18n')),
    path('admin/options/', core_views.options_save, name='options_save'),
    path('admin/options/<slug:slug>/', core_views.options_page, name='options_page'),
    path('admin/', admin.site.urls),
]
