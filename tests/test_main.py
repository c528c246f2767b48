"""Composition root and the reconciliation entry point."""

from decimal import Decimal

import pytest

import main as entry_point
from monetrix.logger import StructuredLogger
from monetrix.repositories.reconciliation_repository import ReconciliationRepository


_real_bootstrap = entry_point.bootstrap


@pytest.fixture
def run_main(monkeypatch, app_config, supabase):
    """Run ``main()`` against the temporary store and the given client."""

    def _run(client=supabase):
        monkeypatch.setattr(
            entry_point, "bootstrap", lambda: _real_bootstrap(app_config, client)
        )
        return entry_point.main()

    return _run


def test_bootstrap_wires_every_service(app_config, supabase):
    ctx = entry_point.bootstrap(app_config, supabase)
    try:
        assert set(ctx.services) == {
            "account_service",
            "balance_service",
            "transaction_service",
            "budget_service",
            "goal_service",
            "dashboard_service",
        }
        assert ctx.db.is_online
        assert ctx.session.is_authenticated is False
        with pytest.raises(RuntimeError):
            ctx.session.get_current_user()
    finally:
        ctx.db.close()


def test_nothing_pending(run_main):
    assert run_main() == 0


def test_pending_adjustment_is_applied(app_config, supabase, user, run_main):
    ctx = entry_point.bootstrap(app_config, supabase)
    ctx.session.set_current_user(user)
    account = ctx.services["account_service"].create_account(
        user, {"name": "Corrente", "type": "checking", "initial_balance": "1000"}
    ).data
    supabase.fail_rpc = True
    ctx.services["transaction_service"].create_transaction(
        ctx.session.get_current_user(),
        {"type": "expense", "amount": "50", "account_id": account.id, "date": "2026-10-10"},
    )
    ctx.db.close()
    supabase.fail_rpc = False

    assert run_main() == 0
    assert supabase.balance_of(account.id) == Decimal("950.00")


def test_pending_while_offline(app_config, db, run_main):
    ReconciliationRepository(db=db, logger=StructuredLogger(name="test.main")).enqueue(
        "acc-1", Decimal("5.00"), None, "apply", "timeout"
    )
    assert run_main(client=None) == 1


def test_abandoned_adjustment_exit_code(app_config, db, supabase, run_main):
    ReconciliationRepository(db=db, logger=StructuredLogger(name="test.main")).enqueue(
        "missing-account", Decimal("5.00"), None, "apply", "timeout"
    )
    app_config.RECONCILIATION_MAX_ATTEMPTS = 1
    assert run_main() == 2
