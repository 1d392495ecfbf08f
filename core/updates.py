# File: core/updates.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List

import requests
from django.conf import settings
from django.core.cache import cache
from packaging.version import InvalidVersion, Version

logger = logging.getLogger('core.updates')

CACHE_KEY = "core:update_core"
FAILED_CACHE_KEY = "core:update_core:failed"
DEFAULT_UPDATE_URL = "https://pypi.org/pypi/Django/json"
DEFAULT_UPDATE_PAGE_URL = "https://docs.djangoproject.com/en/stable/releases/"


class UpdateCheckError(Exception):
    """The release index could not be reached or returned garbage."""


@dataclass(frozen=True)
class CoreUpdate:
    version: str


def update_core_url() -> str:
    return getattr(settings, "CORE_UPDATE_PAGE_URL", DEFAULT_UPDATE_PAGE_URL)


def _stable_releases(payload) -> List[str]:
    releases = payload.get("releases") or {}
    if not isinstance(releases, dict):
        raise UpdateCheckError(f"Unexpected 'releases' of type {type(releases).__name__}")
    found = []
    for raw, files in releases.items():
        if not isinstance(files, list) or not all(isinstance(f, dict) for f in files):
            raise UpdateCheckError(f"Unexpected file list for release {raw!r}")
        try:
            version = Version(raw)
        except InvalidVersion:
            continue
        if version.is_prerelease or version.is_devrelease:
            continue
        # a release whose files are all yanked is not offered
        if files and all(f.get("yanked") for f in files):
            continue
        found.append(version)
    return [str(v) for v in sorted(found, reverse=True)]


def _fetch_releases() -> List[str]:
    url = getattr(settings, "CORE_UPDATE_URL", DEFAULT_UPDATE_URL)
    timeout = getattr(settings, "CORE_UPDATE_TIMEOUT", 5)
    try:
        resp = requests.get(url, timeout=timeout, headers={"Accept": "application/json"})
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Update check against {url} failed: {e}")
        raise UpdateCheckError(str(e)) from e
    if not isinstance(payload, dict):
        raise UpdateCheckError(f"Unexpected payload from {url}")
    return _stable_releases(payload)


def get_core_updates() -> List[CoreUpdate]:
    """
    Available Django releases, newest first.

    Results are cached for CORE_UPDATE_CACHE_TTL seconds. A failure raises
    UpdateCheckError and is remembered for CORE_UPDATE_RETRY_AFTER seconds,
    during which the index is not contacted again.
    """
    if not getattr(settings, "CORE_UPDATE_CHECK", True):
        return []
    versions = cache.get(CACHE_KEY)
    if versions is None:
        failure = cache.get(FAILED_CACHE_KEY)
        if failure is not None:
            raise UpdateCheckError(f"Update check suspended after failure: {failure}")
        try:
            versions = _fetch_releases()
        except UpdateCheckError as e:
            cache.set(FAILED_CACHE_KEY, str(e) or "error", getattr(settings, "CORE_UPDATE_RETRY_AFTER", 60 * 5))
            raise
        cache.set(CACHE_KEY, versions, getattr(settings, "CORE_UPDATE_CACHE_TTL", 60 * 60 * 12))
        logger.info(f"Update check found {len(versions)} stable releases")
    return [CoreUpdate(version=v) for v in versions]
