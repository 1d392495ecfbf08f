# File: core/options.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from .models import Option
from .signals import admin_init

logger = logging.getLogger('core.options')

_MISSING = object()


@dataclass(frozen=True)
class RegisteredSetting:
    group: str
    name: str
    sanitize_callback: Optional[Callable[[Any], Any]] = None
    default: Any = None

    def sanitize(self, value):
        if self.sanitize_callback is None:
            return value
        return self.sanitize_callback(value)


class SettingsRegistry:
    """
    Settings declared by apps in their ``admin_init`` receivers.

    The options endpoint only writes keys found here, grouped by the
    ``option_page`` posted with the form.
    """

    def __init__(self):
        self._settings: Dict[str, RegisteredSetting] = {}

    def register_setting(self, group: str, name: str, sanitize_callback=None, default=None) -> RegisteredSetting:
        setting = RegisteredSetting(group, name, sanitize_callback, default)
        self._settings[name] = setting
        return setting

    def get(self, name: str) -> Optional[RegisteredSetting]:
        return self._settings.get(name)

    def group(self, group: str) -> List[RegisteredSetting]:
        return [s for s in self._settings.values() if s.group == group]

    def __contains__(self, name):
        return name in self._settings


@lru_cache(maxsize=1)
def get_settings_registry() -> SettingsRegistry:
    registry = SettingsRegistry()
    admin_init.send(sender=SettingsRegistry, registry=registry)
    return registry


def refresh_settings_registry() -> None:
    """Drop the cached registry so ``admin_init`` is sent again on next use."""
    get_settings_registry.cache_clear()


class OptionStore:
    """get/set access to Option rows."""

    def get(self, name: str, default=_MISSING):
        """
        Return the stored value for ``name``.

        Without an explicit ``default`` the registered default is used, and
        ``None`` for unregistered keys.
        """
        try:
            return Option.objects.get(name=name).value
        except Option.DoesNotExist:
            pass
        if default is _MISSING:
            setting = get_settings_registry().get(name)
            return setting.default if setting else None
        return default

    def set(self, name: str, value) -> bool:
        """Store ``value``. Returns False when nothing changed."""
        option, created = Option.objects.get_or_create(name=name, defaults={"value": value})
        if created:
            logger.info(f"Option '{name}' created with {value!r}")
            return True
        if option.value == value:
            return False
        old = option.value
        option.value = value
        option.save(update_fields=["value", "updated_at"])
        logger.info(f"Option '{name}' changed from {old!r} to {value!r}")
        return True


options = OptionStore()
