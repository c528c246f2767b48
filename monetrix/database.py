"""
Database Connection Layer.

Holds the two stores the Monetrix service layer talks to:

- **Supabase (hosted PostgreSQL)**: the authoritative store for accounts,
  transactions, budgets and goals.  Row-level security on the server
  restricts every query to the authenticated user's rows; repositories
  additionally filter by ``user_id``.  The ``update_account_balance``
  stored procedure lives here too.

- **SQLite (local)**: a small operational store for the structured audit
  trail and the balance reconciliation queue (adjustments whose remote
  call failed and must be retried).

Data access is performed through the Repository pattern.  This module only
manages the raw *connections*; it contains no query logic.

Usage (dependency injection at startup)::

    from monetrix.database import DatabaseManager
    from monetrix.logger import StructuredLogger

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=config.LOCAL_DB_PATH,
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Optional

from supabase import create_client, Client as SupabaseClient

from monetrix.logger import StructuredLogger


class DatabaseManager:
    """Manages the Supabase client and the local SQLite connection.

    Fully configured at construction time via dependency injection.

    When ``supabase_url`` or ``supabase_key`` is empty the Supabase client
    is **not** created; the ``supabase`` property then raises
    ``RuntimeError``, which repositories surface as a failed remote call.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The Supabase anonymous key.  Row-level security scopes it to the
        signed-in user.
    sqlite_path:
        Filesystem path for the local SQLite database file.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    supabase_client:
        An already-built client.  When given, ``supabase_url`` and
        ``supabase_key`` are ignored.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        sqlite_path: Path,
        logger: StructuredLogger,
        supabase_client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._write_lock: threading.RLock = threading.RLock()
        self._closed: bool = False

        self._supabase: Optional[SupabaseClient] = supabase_client
        if self._supabase is not None:
            self._logger.info("Using injected Supabase client.")
        elif supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                self._logger.warning(
                    "Supabase credential format error: %s. Remote queries disabled.",
                    exc,
                )
            except Exception as exc:
                self._logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Remote queries disabled.",
                    exc,
                    exc_info=True,
                )
        else:
            self._logger.warning(
                "Supabase credentials not configured; remote queries disabled."
            )

        self._sqlite_conn: sqlite3.Connection = self._connect_sqlite(sqlite_path)

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If the Supabase client was not initialised.
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Return the initialised SQLite connection."""
        return self._sqlite_conn

    @property
    def write_lock(self) -> threading.RLock:
        """Return the write lock for thread-safe SQLite operations.

        All code that performs SQLite writes should acquire this lock
        first::

            with db.write_lock:
                db.sqlite.execute("INSERT ...")
                db.sqlite.commit()
        """
        return self._write_lock

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def get_pending_reconciliation_count(self) -> int:
        """Return the number of balance adjustments waiting for a retry.

        Returns ``0`` when the table does not exist yet or the query
        fails, making it safe to call at any point during startup.
        """
        with self._write_lock:
            try:
                row = self._sqlite_conn.execute(
                    "SELECT COUNT(*) AS cnt FROM balance_reconciliation "
                    "WHERE status = 'pending'",
                ).fetchone()
                return int(row["cnt"]) if row else 0
            except sqlite3.Error:
                self._logger.debug(
                    "get_pending_reconciliation_count query failed; returning 0.",
                    exc_info=True,
                )
                return 0

    def close(self) -> None:
        """Close the local SQLite connection.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        with self._write_lock:
            if self._closed:
                return
            try:
                self._sqlite_conn.close()
                self._logger.info("SQLite connection closed.")
            except sqlite3.ProgrammingError:
                pass
            self._closed = True

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _connect_sqlite(self, path: Path) -> sqlite3.Connection:
        """Open (or create) the local SQLite database.

        Returns a connection with ``row_factory`` set to ``sqlite3.Row``
        for dict-like row access.

        Raises
        ------
        PermissionError
            If the OS denies access to the database file or its directory.
        """
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            self._logger.info("SQLite database opened at %s", path)
            return conn
        except PermissionError as exc:
            msg = (
                f"Cannot open the local database at '{path}'. "
                "The file or its directory may be read-only or locked by "
                "another process."
            )
            self._logger.error(msg)
            raise PermissionError(msg) from exc
