"""
Goal Model.

Mirror of the Supabase ``goals`` row: a savings, investment or payment
target the user tracks progress against.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from monetrix.models.enums import GoalStatus, GoalType


class Goal(BaseModel):
    """Represents a financial target."""

    id: Optional[str] = None
    user_id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    target_amount: Decimal = Field(gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    category: Optional[str] = None
    start_date: date
    end_date: date
    status: GoalStatus = GoalStatus.ACTIVE
    goal_type: GoalType = GoalType.SAVINGS
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_dates(self) -> "Goal":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class GoalStatistics(BaseModel):
    total_goals: int = 0
    active_goals: int = 0
    completed_goals: int = 0
    total_target: Decimal = Decimal("0")
    total_current: Decimal = Decimal("0")
    overall_progress: Decimal = Decimal("0")  # percent of total_target
