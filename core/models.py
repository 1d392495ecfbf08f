# File: core/models.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords


class Option(models.Model):
    """
    Site-wide key/value setting.

    Apps own their keys (e.g. ``version_info_show_footer``) and declare them
    through the ``admin_init`` signal; see core.options.
    """
    name = models.CharField(_("Name"), max_length=191, unique=True)
    value = models.JSONField(_("Value"), null=True, blank=True)
    updated_at = models.DateTimeField(_("Updated at"), auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ["name"]
        verbose_name = _("Option")
        verbose_name_plural = _("Options")

    def __str__(self):
        return self.name
