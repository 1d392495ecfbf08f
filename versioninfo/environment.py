# File: versioninfo/environment.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from __future__ import annotations
import platform
from dataclasses import dataclass
from typing import Optional

import django
from django.db import DEFAULT_DB_ALIAS, connections, transaction
from django.utils.translation import gettext as _

from core.utils.text import sanitize_text_field


@dataclass(frozen=True)
class VersionSnapshot:
    """What the three surfaces show. Built per render, never stored."""
    platform_version: str
    runtime_version: str
    server_software: str
    database_version: str
    update_version: Optional[str] = None
    platform_name: str = "Django"
    runtime_name: str = "Python"
    database_name: str = "Database"


class EnvironmentReader:
    platform_name = "Django"
    runtime_name = "Python"

    def platform_version(self) -> str:
        return django.get_version()

    def runtime_version(self) -> str:
        return platform.python_version()

    def server_software(self, request) -> str:
        raw = request.META.get("SERVER_SOFTWARE") if request is not None else None
        if raw is None:
            raw = _("Unknown")
        return sanitize_text_field(raw)


class DatabaseVersionQuery:
    """
    Ask the configured database for its version.

    query_version() talks to the server and may raise DatabaseError;
    db_version() is the backend's own accessor.
    """

    QUERIES = {
        "sqlite": "SELECT sqlite_version()",
        "postgresql": "SHOW server_version",
    }
    DEFAULT_QUERY = "SELECT VERSION()"

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    @property
    def connection(self):
        return connections[self.using]

    @property
    def display_name(self) -> str:
        return self.connection.display_name

    def query_version(self) -> str:
        sql = self.QUERIES.get(self.connection.vendor, self.DEFAULT_QUERY)
        # savepoint so a failed query doesn't poison an outer transaction
        with transaction.atomic(using=self.using):
            with self.connection.cursor() as cursor:
                cursor.execute(sql)
                row = cursor.fetchone()
        return str(row[0]) if row else ""

    def db_version(self) -> str:
        return ".".join(str(part) for part in self.connection.get_database_version())
