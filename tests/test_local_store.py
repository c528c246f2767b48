"""Local SQLite store: schema, audit trail and the reconciliation queue."""

import sqlite3
from decimal import Decimal

import pytest

from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger
from monetrix.models.enums import ReconciliationStatus
from monetrix.repositories.reconciliation_repository import ReconciliationRepository
from monetrix.schema import CURRENT_SCHEMA_VERSION, initialize_schema
from monetrix.utils.audit import fetch_audit_events, log_audit_event


@pytest.fixture
def logger():
    return StructuredLogger(name="test.local_store")


def test_schema_is_idempotent(db, logger):
    initialize_schema(db.sqlite, logger)
    initialize_schema(db.sqlite, logger)

    version = db.sqlite.execute("SELECT version FROM schema_version").fetchall()
    assert [row[0] for row in version] == [CURRENT_SCHEMA_VERSION]
    tables = {
        row[0]
        for row in db.sqlite.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    }
    assert {"audit_log", "balance_reconciliation"} <= tables


def test_schema_pass_recreates_a_missing_table(db, logger):
    db.sqlite.execute("DROP TABLE balance_reconciliation")
    db.sqlite.commit()

    initialize_schema(db.sqlite, logger)

    ReconciliationRepository(db=db, logger=logger).enqueue(
        "acc-1", Decimal("1.00"), None, "apply", "timeout"
    )
    assert db.get_pending_reconciliation_count() == 1


def test_audit_event_round_trip(db, logger):
    log_audit_event(
        logger=logger,
        action="CREATE",
        entity_type="Goal",
        entity_id="g-1",
        user_id="u-1",
        details={"target_amount": "100.00"},
        conn=db.sqlite,
    )
    (event,) = fetch_audit_events(db.sqlite, entity_type="Goal")
    assert event.action == "CREATE"
    assert event.details == {"target_amount": "100.00"}


def test_audit_persist_failure_is_only_logged(logger):
    conn = sqlite3.connect(":memory:")
    # No audit_log table: the insert fails but the call must not raise.
    log_audit_event(
        logger=logger,
        action="DELETE",
        entity_type="Budget",
        entity_id="b-1",
        user_id="u-1",
        conn=conn,
    )
    conn.close()


class TestReconciliationQueue:
    def test_enqueue_and_drain(self, db, logger):
        repo = ReconciliationRepository(db=db, logger=logger)
        first = repo.enqueue("acc-1", Decimal("-12.50"), "tx-1", "create", "timeout")
        second = repo.enqueue("acc-2", Decimal("7.00"), None, "delete", "timeout")

        pending = repo.get_pending()
        assert [e.id for e in pending] == [first, second]
        assert pending[0].amount_change == Decimal("-12.50")
        assert db.get_pending_reconciliation_count() == 2

        repo.mark_applied(first)
        assert [e.id for e in repo.get_pending()] == [second]
        (applied,) = repo.get_by_status(ReconciliationStatus.APPLIED)
        assert applied.attempts == 1

    def test_attempt_counter(self, db, logger):
        repo = ReconciliationRepository(db=db, logger=logger)
        queue_id = repo.enqueue("acc-1", Decimal("1.00"), None, "apply", "boom")

        assert repo.mark_attempt_failed(queue_id, "boom", 3) == ReconciliationStatus.PENDING
        assert repo.mark_attempt_failed(queue_id, "boom", 3) == ReconciliationStatus.PENDING
        assert repo.mark_attempt_failed(queue_id, "still down", 3) == ReconciliationStatus.FAILED
        assert repo.get_pending() == []
        (entry,) = repo.get_by_status(ReconciliationStatus.FAILED)
        assert entry.attempts == 3
        assert entry.error_message == "still down"


def test_pending_count_without_schema(tmp_path, logger):
    manager = DatabaseManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=tmp_path / "empty.db",
        logger=logger,
    )
    assert manager.is_online is False
    assert manager.get_pending_reconciliation_count() == 0
    with pytest.raises(RuntimeError):
        manager.supabase
    manager.close()
    manager.close()
