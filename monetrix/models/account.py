"""
Account Model.

Mirror of the Supabase ``accounts`` row.  ``balance`` is a stored running
total: it starts at ``initial_balance`` and is moved only by the
``update_account_balance`` stored procedure when confirmed transactions are
created, edited or deleted.  Application code never writes it directly.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from monetrix.models.enums import AccountType, Currency


class Account(BaseModel):
    """Represents a user's bank account, card or investment account."""

    id: Optional[str] = None  # Supabase UUID, assigned on insert
    user_id: str
    name: str = Field(min_length=1)
    type: AccountType
    institution: Optional[str] = None
    currency: Currency = Currency.BRL
    initial_balance: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    is_active: bool = True
    reference_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("name")
    @classmethod
    def strip_name(cls: type[Account], v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Account name must not be blank")
        return stripped

    @property
    def is_credit_card(self) -> bool:
        return self.type == AccountType.CREDIT_CARD


class AccountFilters(BaseModel):
    """Optional filters for account listings."""

    type: Optional[AccountType] = None
    is_active: Optional[bool] = None
    currency: Optional[Currency] = None
    order_by: str = "name"
    descending: bool = False


class FinancialSummary(BaseModel):
    """Net-worth style roll-up across the user's accounts.

    Only active accounts contribute to the monetary totals.  Credit-card
    balances count as debt (their absolute value); every other type counts
    as an asset.
    """

    total_balance: Decimal = Decimal("0")
    checking_balance: Decimal = Decimal("0")
    savings_balance: Decimal = Decimal("0")
    credit_card_balance: Decimal = Decimal("0")
    investment_balance: Decimal = Decimal("0")
    debit_card_balance: Decimal = Decimal("0")
    total_assets: Decimal = Decimal("0")
    total_debts: Decimal = Decimal("0")
    net_worth: Decimal = Decimal("0")
    active_accounts: int = 0
    inactive_accounts: int = 0
