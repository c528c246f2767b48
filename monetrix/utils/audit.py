"""
Structured Audit Logging Utility.

Every state change on an account, transaction, budget or goal is recorded
as a structured JSON object: once on the log stream and, when a SQLite
connection is supplied, once in the local ``audit_log`` table.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from monetrix.logger import StructuredLogger

__all__ = ["AuditEvent", "fetch_audit_events", "log_audit_event"]

# Flat scalars only; nested payloads belong in their own model.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit trail entry."""

    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    user_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: str,
    user_id: str,
    details: Optional[dict[str, DetailValue]] = None,
    conn: Optional[sqlite3.Connection] = None,
) -> None:
    """Log a structured JSON audit event, with optional SQLite persistence.

    Args:
        logger: The logger instance to write to.
        action: What happened (``"CREATE"``, ``"UPDATE"``, ``"DELETE"``,
            ``"TOGGLE_ACTIVE"``, ``"RECONCILE"`` ...).
        entity_type: ``"Account"``, ``"Transaction"``, ``"Budget"``,
            ``"Goal"`` or ``"BalanceAdjustment"``.
        entity_id: Primary key of the affected entity.
        user_id: ID of the user who performed the action.
        details: Optional flat context (amounts as strings, old/new status).
        conn: When provided, the event is also inserted into ``audit_log``.
            A failed insert is logged as a warning and does not affect the
            calling operation.
    """
    event = AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        details=details or {},
    )
    logger.info("AUDIT: %s", json.dumps(event.model_dump(), default=str))

    if conn is not None:
        try:
            _persist(conn, event)
        except sqlite3.Error as db_err:
            logger.warning("Failed to persist audit event to SQLite: %s", db_err)


def _persist(conn: sqlite3.Connection, event: AuditEvent) -> None:
    conn.execute(
        """
        INSERT INTO audit_log (timestamp, action, entity_type, entity_id, user_id, details)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            event.timestamp,
            event.action,
            event.entity_type,
            event.entity_id,
            event.user_id,
            json.dumps(event.details, default=str),
        ),
    )
    conn.commit()


def fetch_audit_events(
    conn: sqlite3.Connection,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
) -> list[AuditEvent]:
    """Read persisted audit events, oldest first."""
    query = (
        "SELECT timestamp, action, entity_type, entity_id, user_id, details "
        "FROM audit_log WHERE 1 = 1"
    )
    params: list[str] = []
    if entity_type is not None:
        query += " AND entity_type = ?"
        params.append(entity_type)
    if entity_id is not None:
        query += " AND entity_id = ?"
        params.append(entity_id)
    query += " ORDER BY id"

    rows = conn.execute(query, params).fetchall()
    return [
        AuditEvent(
            timestamp=row[0],
            action=row[1],
            entity_type=row[2],
            entity_id=row[3],
            user_id=row[4],
            details=json.loads(row[5] or "{}"),
        )
        for row in rows
    ]
