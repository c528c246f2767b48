"""
Dashboard Service.

Provides dashboard metrics: current-month income/expense KPIs, the monthly
evolution over a trailing window, and income/expense distribution by
category.  Everything is recomputed from confirmed transaction rows on
each call; there is no cache.

One repository query covers the whole window; grouping and summing happen
here.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from monetrix.config import AppConfig
from monetrix.logger import StructuredLogger
from monetrix.models.dashboard import (
    CategoryData,
    DashboardData,
    DashboardKPIs,
    MonthlyData,
)
from monetrix.models.enums import TransactionType
from monetrix.models.service_models import ServiceResult
from monetrix.models.transaction import Transaction
from monetrix.models.user import User
from monetrix.repositories.transaction_repository import TransactionRepository
from monetrix.services.base_service import BaseService
from monetrix.utils.general import month_key, shift_month


class DashboardService(BaseService):
    """
    Service layer for dashboard aggregates.

    Delegates the single window query to TransactionRepository and
    aggregates the rows in Python.
    """

    def __init__(
        self,
        repo: TransactionRepository,
        logger: StructuredLogger,
        months: int = 6,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._months = months

    def get_dashboard(
        self,
        current_user: User,
        today: Optional[date] = None,
    ) -> ServiceResult[DashboardData]:
        """
        Consolidated dashboard fetch.

        Args:
            current_user: The authenticated user (scopes every row).
            today: Reference day; defaults to ``date.today()``.  The current
                month is the month containing it.

        Returns:
            ServiceResult with :class:`DashboardData`:
                - kpis: current-month income, expense, net, count
                - monthly_evolution: one entry per month, oldest first
                - expense_distribution / income_distribution: current month,
                  sorted by value descending
        """
        today = today or date.today()
        this_month = shift_month(today, 0)
        window_start = shift_month(today, -(self._months - 1))
        window_end = shift_month(today, 1)

        try:
            rows = self._repo.get_in_period(current_user.id, window_start, window_end)
        except Exception as exc:
            self._logger.error(
                "Failed to compute dashboard: %s", exc, exc_info=True,
            )
            return ServiceResult(
                success=False,
                error=f"Database error computing dashboard: {exc}",
                status_code=500,
            )

        current_rows = [tx for tx in rows if tx.date >= this_month]
        data = DashboardData(
            kpis=compute_kpis(current_rows),
            monthly_evolution=monthly_evolution(rows, window_start, self._months),
            expense_distribution=category_distribution(
                current_rows, TransactionType.EXPENSE
            ),
            income_distribution=category_distribution(
                current_rows, TransactionType.INCOME
            ),
        )
        return ServiceResult(success=True, data=data)


# ---------------------------------------------------------------------------
# Aggregation helpers
# ---------------------------------------------------------------------------

def compute_kpis(transactions: list[Transaction]) -> DashboardKPIs:
    income = sum(
        (tx.amount for tx in transactions if tx.type == TransactionType.INCOME),
        Decimal("0"),
    )
    expense = sum(
        (tx.amount for tx in transactions if tx.type == TransactionType.EXPENSE),
        Decimal("0"),
    )
    return DashboardKPIs(
        total_income=income,
        total_expense=expense,
        net_balance=income - expense,
        transaction_count=len(transactions),
    )


def monthly_evolution(
    transactions: list[Transaction], start: date, months: int
) -> list[MonthlyData]:
    """Income, expense and net per ``YYYY-MM``; empty months are zero."""
    buckets: dict[str, MonthlyData] = {}
    for offset in range(months):
        key = month_key(shift_month(start, offset))
        buckets[key] = MonthlyData(month=key)

    for tx in transactions:
        bucket = buckets.get(month_key(tx.date))
        if bucket is None:
            continue
        if tx.type == TransactionType.INCOME:
            bucket.income += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            bucket.expense += tx.amount

    for bucket in buckets.values():
        bucket.net = bucket.income - bucket.expense
    return list(buckets.values())


def category_distribution(
    transactions: list[Transaction], tx_type: TransactionType
) -> list[CategoryData]:
    """Share of each category in the total for *tx_type*.

    Uncategorised rows are grouped under ``AppConfig.UNCATEGORIZED_LABEL``.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        if tx.type == tx_type:
            totals[tx.category_id or AppConfig.UNCATEGORIZED_LABEL] += tx.amount

    grand_total = sum(totals.values(), Decimal("0"))
    if grand_total == 0:
        return []

    items = [
        CategoryData(
            category=category,
            value=value,
            percentage=(value / grand_total * 100).quantize(Decimal("0.01")),
        )
        for category, value in totals.items()
    ]
    items.sort(key=lambda item: item.value, reverse=True)
    return items
