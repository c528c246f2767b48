"""
Dashboard DTOs.

Output shapes for :class:`monetrix.services.dashboard_service.DashboardService`.
Everything here is recomputed from transaction rows on each request.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class DashboardKPIs(BaseModel):
    """Current-month headline numbers."""

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    transaction_count: int = 0


class MonthlyData(BaseModel):
    month: str  # YYYY-MM
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")


class CategoryData(BaseModel):
    category: str
    value: Decimal
    percentage: Decimal  # 0-100, two decimal places


class DashboardData(BaseModel):
    kpis: DashboardKPIs
    monthly_evolution: list[MonthlyData] = Field(default_factory=list)
    expense_distribution: list[CategoryData] = Field(default_factory=list)
    income_distribution: list[CategoryData] = Field(default_factory=list)
