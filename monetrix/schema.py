"""
Local SQLite Schema Initialization.

Defines the tables of the Monetrix local store (the audit trail and the
balance reconciliation queue) and :func:`initialize_schema`, which creates
them idempotently.  ``schema_version`` holds a single row stamped with
:data:`CURRENT_SCHEMA_VERSION`.

Usage::

    import sqlite3
    from monetrix.logger import StructuredLogger
    from monetrix.schema import initialize_schema

    conn = sqlite3.connect("monetrix_local.db")
    initialize_schema(conn, StructuredLogger(name="schema"))
"""

from __future__ import annotations

import sqlite3

from monetrix.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

CURRENT_SCHEMA_VERSION: int = 1

_TABLE_DEFINITIONS: list[str] = [
    # -- single-row version tracker -------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- persistent structured audit trail ------------------------------------
    """
    CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        action TEXT NOT NULL,
        entity_type TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        details TEXT DEFAULT '{}',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- balance adjustments whose remote call failed -------------------------
    # amount_change is TEXT so Decimal values round-trip without float error.
    """
    CREATE TABLE IF NOT EXISTS balance_reconciliation (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id TEXT NOT NULL,
        amount_change TEXT NOT NULL,
        transaction_id TEXT,
        reason TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT 'pending'
               CHECK (status IN ('pending', 'applied', 'failed')),
        attempts INTEGER NOT NULL DEFAULT 0,
        error_message TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        attempted_at TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_balance_reconciliation_status ON balance_reconciliation(status)",
    "CREATE INDEX IF NOT EXISTS idx_audit_log_entity ON audit_log(entity_type, entity_id)",
]


def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Create any missing table or index and record the schema version.

    Every statement is ``IF NOT EXISTS``, so this runs on every startup.
    The DDL and the version stamp commit together or roll back together.
    """
    try:
        for ddl in _TABLE_DEFINITIONS:
            conn.execute(ddl)
        conn.execute(
            """
            INSERT INTO schema_version (id, version) VALUES (1, ?)
            ON CONFLICT(id) DO UPDATE SET version = excluded.version
            """,
            (CURRENT_SCHEMA_VERSION,),
        )
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        logger.error("Local schema initialisation failed; changes rolled back.")
        raise

    logger.info("Local schema ready (version %d).", CURRENT_SCHEMA_VERSION)
