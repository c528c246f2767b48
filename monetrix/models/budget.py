"""
Budget Model.

Mirror of the Supabase ``budgets`` row.  A budget caps spending in one
category for one reference month; ``status`` flips between ``active`` and
``exceeded`` whenever ``spent_amount`` is updated.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from monetrix.models.enums import BudgetPeriod, BudgetStatus


class Budget(BaseModel):
    """Represents a spending limit for a category and period."""

    id: Optional[str] = None
    user_id: str
    category: str = Field(min_length=1)
    limit_amount: Decimal = Field(gt=0)
    spent_amount: Decimal = Field(default=Decimal("0"), ge=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    reference_month: str  # YYYY-MM
    reference_year: int = Field(ge=1900, le=9999)
    status: BudgetStatus = BudgetStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("reference_month")
    @classmethod
    def check_reference_month(cls: type[Budget], v: str) -> str:
        try:
            datetime.strptime(v, "%Y-%m")
        except ValueError as exc:
            raise ValueError(
                f"reference_month must be YYYY-MM, got {v!r}"
            ) from exc
        return v


class BudgetStatistics(BaseModel):
    total_budgets: int = 0
    active_budgets: int = 0
    exceeded_budgets: int = 0
    total_limit: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    average_usage: Decimal = Decimal("0")  # percent of total_limit
