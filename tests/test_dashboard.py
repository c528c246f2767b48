from datetime import date
from decimal import Decimal

from monetrix.models.enums import TransactionStatus, TransactionType
from monetrix.models.transaction import Transaction
from monetrix.services.dashboard_service import (
    category_distribution,
    compute_kpis,
    monthly_evolution,
)
from monetrix.utils.general import month_key, shift_month

TODAY = date(2026, 10, 19)


def _tx(tx_type, amount, day, category_id=None):
    return Transaction(
        user_id="u",
        type=tx_type,
        amount=Decimal(amount),
        status=TransactionStatus.CONFIRMED,
        account_id="a",
        date=day,
        category_id=category_id,
    )


class TestCalendarHelpers:
    def test_shift_month_crosses_years(self):
        assert shift_month(date(2026, 1, 31), -1) == date(2025, 12, 1)
        assert shift_month(date(2026, 12, 5), 1) == date(2027, 1, 1)
        assert shift_month(date(2026, 10, 19), 0) == date(2026, 10, 1)
        assert shift_month(date(2026, 3, 31), -13) == date(2025, 2, 1)

    def test_month_key(self):
        assert month_key(date(2026, 3, 9)) == "2026-03"


class TestAggregation:
    def test_kpis(self):
        kpis = compute_kpis(
            [
                _tx(TransactionType.INCOME, "5000", TODAY),
                _tx(TransactionType.EXPENSE, "1200", TODAY),
                _tx(TransactionType.TRANSFER, "300", TODAY),
            ]
        )
        assert kpis.total_income == Decimal("5000.00")
        assert kpis.total_expense == Decimal("1200.00")
        assert kpis.net_balance == Decimal("3800.00")
        assert kpis.transaction_count == 3

    def test_monthly_evolution_fills_empty_months(self):
        start = date(2026, 5, 1)
        months = monthly_evolution(
            [
                _tx(TransactionType.INCOME, "100", date(2026, 5, 3)),
                _tx(TransactionType.EXPENSE, "40", date(2026, 5, 20)),
                _tx(TransactionType.EXPENSE, "10", date(2026, 7, 1)),
            ],
            start,
            6,
        )
        assert [m.month for m in months] == [
            "2026-05", "2026-06", "2026-07", "2026-08", "2026-09", "2026-10",
        ]
        assert months[0].net == Decimal("60.00")
        assert months[1].income == Decimal("0")
        assert months[2].net == Decimal("-10.00")

    def test_category_distribution(self):
        items = category_distribution(
            [
                _tx(TransactionType.EXPENSE, "300", TODAY, "mercado"),
                _tx(TransactionType.EXPENSE, "100", TODAY),
                _tx(TransactionType.EXPENSE, "600", TODAY, "aluguel"),
                _tx(TransactionType.INCOME, "5000", TODAY, "salario"),
            ],
            TransactionType.EXPENSE,
        )
        assert [(i.category, i.percentage) for i in items] == [
            ("aluguel", Decimal("60.00")),
            ("mercado", Decimal("30.00")),
            ("Outros", Decimal("10.00")),
        ]

    def test_category_distribution_without_rows(self):
        assert category_distribution([], TransactionType.INCOME) == []


class TestDashboardService:
    def test_dashboard(self, services, user, make_account, make_transaction):
        account = make_account()
        make_transaction(account, amount="4000", type="income", date="2026-10-05", category_id="salario")
        make_transaction(account, amount="1000", date="2026-10-06", category_id="aluguel")
        make_transaction(account, amount="500", date="2026-10-07", status="pending")
        make_transaction(account, amount="250", date="2026-08-15")
        make_transaction(account, amount="75", date="2026-04-30")

        result = services["dashboard_service"].get_dashboard(user, today=TODAY)
        assert result.success, result.error
        data = result.data

        assert data.kpis.total_income == Decimal("4000.00")
        assert data.kpis.total_expense == Decimal("1000.00")
        assert data.kpis.transaction_count == 2

        assert len(data.monthly_evolution) == 6
        assert data.monthly_evolution[0].month == "2026-05"
        by_month = {m.month: m for m in data.monthly_evolution}
        assert by_month["2026-08"].expense == Decimal("250.00")
        assert by_month["2026-10"].net == Decimal("3000.00")

        assert [c.category for c in data.expense_distribution] == ["aluguel"]
        assert data.income_distribution[0].percentage == Decimal("100.00")

    def test_remote_failure(self, supabase, services, user):
        supabase.failing.add(("transactions", "select"))
        result = services["dashboard_service"].get_dashboard(user, today=TODAY)
        assert result.status_code == 500
