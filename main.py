"""
Monetrix Service Layer Entry Point.

Bootstraps the dependency graph via constructor injection, initialises the
local SQLite schema, and runs one pass over the balance reconciliation
queue: every adjustment whose ``update_account_balance`` call failed
earlier is replayed once.

Usage::

    python main.py
"""

from __future__ import annotations

import atexit
import sys
import traceback
from dataclasses import dataclass
from typing import Optional

from supabase import Client as SupabaseClient

from monetrix.auth import SessionManager
from monetrix.config import AppConfig, get_config
from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger, get_logger
from monetrix.schema import initialize_schema
from monetrix.services import ServiceContainer, create_services


@dataclass
class AppContext:
    """Everything an embedding application needs after startup."""

    config: AppConfig
    db: DatabaseManager
    session: SessionManager
    services: ServiceContainer


def bootstrap(
    config: Optional[AppConfig] = None,
    supabase_client: Optional[SupabaseClient] = None,
) -> AppContext:
    """Wire configuration, connections, schema and services."""
    config = config or get_config()

    # ------------------------------------------------------------------
    # 1. Database Manager (Supabase for entities, SQLite for local state)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=config.LOCAL_DB_PATH,
        logger=StructuredLogger(name="database"),
        supabase_client=supabase_client,
    )

    # ------------------------------------------------------------------
    # 2. SQLite Schema Initialization (idempotent)
    # ------------------------------------------------------------------
    initialize_schema(db.sqlite, StructuredLogger(name="schema"))

    # ------------------------------------------------------------------
    # 3. Session + Service Container (single composition root)
    # ------------------------------------------------------------------
    session = SessionManager()
    services = create_services(db=db, config=config)

    return AppContext(config=config, db=db, session=session, services=services)


def main() -> int:
    """Run one reconciliation pass.  Returns the process exit code."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Monetrix reconciliation pass...")

    ctx = bootstrap()
    # DatabaseManager.close() is idempotent; this covers unclean exits.
    atexit.register(ctx.db.close)

    try:
        pending = ctx.db.get_pending_reconciliation_count()
        if pending == 0:
            logger.info("No pending balance adjustments.")
            return 0

        if not ctx.db.is_online:
            logger.warning(
                "%d balance adjustment(s) pending but Supabase is not "
                "configured; skipping.",
                pending,
            )
            return 1

        result = ctx.services["balance_service"].process_pending()
        if not result.success:
            logger.error("Reconciliation pass failed: %s", result.error)
            return 1

        report = result.data
        logger.info(
            "Reconciliation: %d applied, %d retrying, %d failed.",
            report.applied,
            report.retrying,
            report.failed,
        )
        return 0 if report.failed == 0 else 2
    finally:
        ctx.db.close()
        logger.info("Monetrix shut down.")


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as exc:
        detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        sys.stderr.write(f"FATAL: {type(exc).__name__}: {exc}\n{detail}")
        sys.exit(1)
