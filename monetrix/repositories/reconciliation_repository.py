"""
Balance Reconciliation Repository.

Local SQLite queue of balance adjustments whose remote
``update_account_balance`` call failed.  Each row records the exact
``amount_change`` that was not applied so a later pass can replay it.

Status transitions::

    pending --(replay ok)--> applied
    pending --(replay fails, attempts < max)--> pending (attempts += 1)
    pending --(replay fails, attempts == max)--> failed
"""

from __future__ import annotations

import sqlite3
from decimal import Decimal
from typing import Optional

from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger
from monetrix.models.enums import ReconciliationStatus
from monetrix.models.service_models import ReconciliationEntry
from monetrix.repositories.base_repository import BaseRepository, RepositoryError


class ReconciliationRepository(BaseRepository):
    """Data access layer for the ``balance_reconciliation`` queue."""

    TABLE = "balance_reconciliation"

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    def enqueue(
        self,
        account_id: str,
        amount_change: Decimal,
        transaction_id: Optional[str],
        reason: str,
        error_message: str,
    ) -> int:
        """Record a missed adjustment and return its queue id.

        Raises:
            RepositoryError: If the local insert fails.
        """
        try:
            with self._db.write_lock:
                cursor = self.sqlite.execute(
                    """
                    INSERT INTO balance_reconciliation
                        (account_id, amount_change, transaction_id, reason, error_message)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        account_id,
                        format(amount_change, "f"),
                        transaction_id,
                        reason,
                        error_message,
                    ),
                )
                self._commit()
        except sqlite3.Error as exc:
            self._logger.error(
                "Failed to enqueue balance adjustment for account %s: %s",
                account_id,
                exc,
            )
            raise RepositoryError("enqueue", self.TABLE, exc) from exc

        queue_id = int(cursor.lastrowid)
        self._logger.info(
            "Queued balance adjustment %d: account=%s amount_change=%s",
            queue_id,
            account_id,
            amount_change,
        )
        return queue_id

    def get_pending(self, limit: int = 100) -> list[ReconciliationEntry]:
        """Return pending entries in insertion order."""
        with self._db.write_lock:
            rows = self.sqlite.execute(
                """
                SELECT * FROM balance_reconciliation
                WHERE status = 'pending'
                ORDER BY id ASC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [ReconciliationEntry(**dict(row)) for row in rows]

    def get_by_status(self, status: ReconciliationStatus) -> list[ReconciliationEntry]:
        with self._db.write_lock:
            rows = self.sqlite.execute(
                "SELECT * FROM balance_reconciliation WHERE status = ? ORDER BY id ASC",
                (status.value,),
            ).fetchall()
        return [ReconciliationEntry(**dict(row)) for row in rows]

    def mark_applied(self, queue_id: int) -> None:
        with self._db.write_lock:
            self.sqlite.execute(
                """
                UPDATE balance_reconciliation
                SET status = 'applied',
                    attempts = attempts + 1,
                    attempted_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (queue_id,),
            )
            self._commit()

    def mark_attempt_failed(
        self, queue_id: int, error_message: str, max_attempts: int
    ) -> ReconciliationStatus:
        """Count a failed replay; the entry becomes ``failed`` once it has
        been attempted *max_attempts* times.  Returns the new status."""
        with self._db.write_lock:
            row = self.sqlite.execute(
                "SELECT attempts FROM balance_reconciliation WHERE id = ?",
                (queue_id,),
            ).fetchone()
            attempts = (int(row["attempts"]) if row else 0) + 1
            status = (
                ReconciliationStatus.FAILED
                if attempts >= max_attempts
                else ReconciliationStatus.PENDING
            )
            self.sqlite.execute(
                """
                UPDATE balance_reconciliation
                SET status = ?,
                    attempts = ?,
                    error_message = ?,
                    attempted_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (status.value, attempts, error_message, queue_id),
            )
            self._commit()
        return status
