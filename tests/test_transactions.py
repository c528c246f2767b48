"""Transaction listing, filtering and summaries."""

from datetime import date
from decimal import Decimal

from monetrix.models.enums import TransactionStatus, TransactionType
from monetrix.models.transaction import Transaction, TransactionFilters
from monetrix.repositories.transaction_repository import TransactionRepository
from monetrix.services.transaction_service import summarize
from monetrix.utils.audit import fetch_audit_events


def _tx(tx_type, amount, status=TransactionStatus.CONFIRMED):
    return Transaction(
        user_id="u",
        type=tx_type,
        amount=Decimal(amount),
        status=status,
        account_id="a",
        date=date(2026, 10, 1),
    )


class TestSummarize:
    def test_totals_count_confirmed_rows_only(self):
        summary = summarize(
            [
                _tx(TransactionType.INCOME, "3000.00"),
                _tx(TransactionType.EXPENSE, "120.00"),
                _tx(TransactionType.EXPENSE, "80.00"),
                _tx(TransactionType.EXPENSE, "999.00", TransactionStatus.PENDING),
                _tx(TransactionType.TRANSFER, "500.00"),
            ]
        )
        assert summary.total_income == Decimal("3000.00")
        assert summary.total_expense == Decimal("200.00")
        assert summary.net_balance == Decimal("2800.00")
        assert summary.transaction_count == 4
        assert summary.confirmed_count == 4
        assert summary.pending_count == 1
        assert summary.largest_expense == Decimal("120.00")
        assert summary.average_transaction == Decimal("800.00")

    def test_average_leaves_transfer_amounts_out(self):
        summary = summarize(
            [
                _tx(TransactionType.INCOME, "100.00"),
                _tx(TransactionType.TRANSFER, "50.00"),
                _tx(TransactionType.EXPENSE, "10.00", TransactionStatus.PENDING),
            ]
        )
        assert summary.transaction_count == 2
        assert summary.pending_count == 1
        assert summary.average_transaction == Decimal("50.00")

    def test_empty(self):
        summary = summarize([])
        assert summary.transaction_count == 0
        assert summary.average_transaction == Decimal("0")


class TestTransactionModel:
    def test_tags_stored_as_json_text_are_decoded(self):
        tx = Transaction(
            user_id="u",
            type="expense",
            amount="10",
            account_id="a",
            date="2026-10-01",
            tags='["casa", "mercado"]',
        )
        assert tx.tags == ["casa", "mercado"]

    def test_transfer_without_counterparty_is_not_a_transfer(self):
        assert _tx(TransactionType.TRANSFER, "1").is_transfer is False


class TestListing:
    def test_newest_first(self, services, user, make_account, make_transaction):
        account = make_account()
        make_transaction(account, date="2026-10-01", description="older")
        make_transaction(account, date="2026-10-15", description="newer")

        result = services["transaction_service"].list_transactions(user)
        assert [tx.description for tx in result.data] == ["newer", "older"]

    def test_filters_combine(self, services, user, make_account, make_transaction):
        account = make_account()
        make_transaction(account, amount="10", type="income", date="2026-09-30")
        make_transaction(account, amount="20", date="2026-10-02", category_id="mercado")
        make_transaction(account, amount="200", date="2026-10-03", category_id="mercado")

        result = services["transaction_service"].list_transactions(
            user,
            TransactionFilters(
                type=TransactionType.EXPENSE,
                date_from=date(2026, 10, 1),
                amount_max=Decimal("100"),
            ),
        )
        assert [tx.amount for tx in result.data] == [Decimal("20.00")]

        by_category = services["transaction_service"].get_by_category(user, "mercado")
        assert len(by_category.data) == 2

    def test_search_matches_description_and_notes(self, services, user, make_account, make_transaction):
        account = make_account()
        make_transaction(account, description="Supermercado Pão")
        make_transaction(account, description="Uber", notes="ida ao mercado")
        make_transaction(account, description="Cinema")

        result = services["transaction_service"].list_transactions(
            user, TransactionFilters(search="MERCADO")
        )
        assert len(result.data) == 2

    def test_pagination(self, services, user, make_account, make_transaction):
        account = make_account()
        for day in range(1, 6):
            make_transaction(account, date=f"2026-10-0{day}")

        page = services["transaction_service"].list_transactions(
            user, TransactionFilters(limit=2, offset=2)
        )
        assert [tx.date.day for tx in page.data] == [3, 2]

    def test_pending_and_recurring_views(self, services, user, make_account, make_transaction):
        account = make_account()
        make_transaction(account, status="pending")
        make_transaction(account, is_recurring=True)

        assert len(services["transaction_service"].get_pending(user).data) == 1
        assert len(services["transaction_service"].get_recurring(user).data) == 1
        assert len(services["transaction_service"].get_by_account(user, account.id).data) == 2

    def test_summary_over_filters(self, services, user, make_account, make_transaction):
        account = make_account()
        make_transaction(account, amount="100", type="income")
        make_transaction(account, amount="30")

        result = services["transaction_service"].get_summary(user)
        assert result.data.net_balance == Decimal("70.00")

    def test_reads_page_past_the_server_row_cap(self, monkeypatch, supabase, services, user, make_account, make_transaction):
        monkeypatch.setattr(TransactionRepository, "PAGE_SIZE", 2)
        supabase.max_rows = 2
        account = make_account()
        for day in range(1, 6):
            make_transaction(account, amount="10", date=f"2026-10-0{day}")

        listed = services["transaction_service"].list_transactions(user)
        assert [tx.date.day for tx in listed.data] == [5, 4, 3, 2, 1]

        summary = services["transaction_service"].get_summary(user)
        assert summary.data.transaction_count == 5
        assert summary.data.total_expense == Decimal("50.00")

    def test_malformed_stored_tags_read_as_empty(self, supabase, services, user, make_account, make_transaction):
        account = make_account()
        broken = make_transaction(account, tags=["casa"])
        make_transaction(account)
        (row,) = [r for r in supabase.tables["transactions"] if r["id"] == broken.id]
        row["tags"] = "[broken"

        listed = services["transaction_service"].list_transactions(user)
        assert listed.success, listed.error
        assert {tx.id: tx.tags for tx in listed.data}[broken.id] == []

        deleted = services["transaction_service"].delete_transaction(user, broken.id)
        assert deleted.success, deleted.error
        assert supabase.balance_of(account.id) == Decimal("950.00")


class TestWrites:
    def test_create_accepts_form_field_names(self, services, user, make_account):
        account = make_account()
        result = services["transaction_service"].create_transaction(
            user,
            {
                "type": "expense",
                "amount": "R$ 1.250,90",
                "accountId": account.id,
                "transactionDate": "05/10/2026",
                "tags": "casa, reforma",
                "paymentMethod": "pix",
            },
        )
        assert result.success, result.error
        tx = result.data
        assert tx.amount == Decimal("1250.90")
        assert tx.date == date(2026, 10, 5)
        assert tx.tags == ["casa", "reforma"]
        assert tx.status == TransactionStatus.CONFIRMED

    def test_get_transaction(self, services, user, make_account, make_transaction):
        tx = make_transaction(make_account())
        result = services["transaction_service"].get_transaction(user, tx.id)
        assert result.data.id == tx.id

    def test_empty_update_returns_existing_row(self, supabase, services, user, make_account, make_transaction):
        tx = make_transaction(make_account())
        calls = len(supabase.rpc_calls)
        result = services["transaction_service"].update_transaction(user, tx.id, {"id": "x"})
        assert result.success
        assert result.data.id == tx.id
        assert len(supabase.rpc_calls) == calls

    def test_writes_are_audited(self, db, services, user, make_account, make_transaction):
        tx = make_transaction(make_account(), amount="50")
        services["transaction_service"].update_transaction(user, tx.id, {"amount": "60"})
        services["transaction_service"].delete_transaction(user, tx.id)

        events = fetch_audit_events(db.sqlite, "Transaction", tx.id)
        assert [e.action for e in events] == ["CREATE", "UPDATE", "DELETE"]
        assert events[1].details["old_amount"] == "50.00"
        assert events[1].details["new_amount"] == "60.00"
        assert all(e.user_id == user.id for e in events)
