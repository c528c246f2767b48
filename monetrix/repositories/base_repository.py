"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase + SQLite)
- Logger reference
- Convenience properties for accessing clients
- Uniform wrapping of remote failures into :class:`RepositoryError`
"""

from __future__ import annotations

import sqlite3
from typing import Callable, TypeVar

from supabase import Client as SupabaseClient

from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger

T = TypeVar("T")


class RepositoryError(Exception):
    """A Supabase or SQLite call failed.

    The original exception is kept on ``__cause__`` and ``cause``.
    """

    def __init__(self, operation: str, table: str, cause: BaseException) -> None:
        super().__init__(f"{operation} on '{table}' failed: {cause}")
        self.operation = operation
        self.table = table
        self.cause = cause


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for remote operations."""
        return self._db.supabase

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Returns the SQLite connection for the local operational store."""
        return self._db.sqlite

    def _remote(self, operation_name: str, op: Callable[[], T]) -> T:
        """Run *op* against Supabase, re-raising any failure as
        :class:`RepositoryError`.

        There is no local fallback for entity tables: a failed remote read
        or write is reported to the service, which turns it into a failed
        ``ServiceResult``.

        Parameters
        ----------
        operation_name:
            Human-readable label for log messages, e.g. ``"get_by_id"``.
        op:
            Zero-argument callable performing the query.
        """
        try:
            return op()
        except RepositoryError:
            raise
        except Exception as exc:
            self._logger.error(
                "Supabase %s on %s failed: %s", operation_name, self.TABLE, exc
            )
            raise RepositoryError(operation_name, self.TABLE, exc) from exc

    def _commit(self) -> None:
        """Commit the pending SQLite transaction."""
        self.sqlite.commit()
