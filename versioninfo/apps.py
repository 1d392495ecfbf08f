# File: versioninfo/apps.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class VersionInfoConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'versioninfo'
    verbose_name = _("Version Info")

    def ready(self):
        """Hook the version info surfaces into core's extension points."""
        from .service import VersionInfoService
        # signal receivers are weak references; keep the service alive here
        self.service = VersionInfoService()
        self.service.register()
