"""
Transaction Model.

Mirror of the Supabase ``transactions`` row plus the filter and summary
shapes used by the transaction listing and reporting paths.
"""

from __future__ import annotations

import json
from datetime import date as Date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from monetrix.models.enums import (
    PaymentMethod,
    TransactionStatus,
    TransactionType,
)


class Transaction(BaseModel):
    """Represents a single income, expense or transfer.

    ``amount`` is always positive; the sign of the effect on the account
    comes from ``type``.  A transfer debits ``account_id`` and credits
    ``transfer_account_id``.
    """

    id: Optional[str] = None  # Supabase UUID, assigned on insert
    user_id: str
    type: TransactionType
    amount: Decimal = Field(gt=0)
    status: TransactionStatus = TransactionStatus.CONFIRMED
    account_id: str
    transfer_account_id: Optional[str] = None
    category_id: Optional[str] = None
    description: str = ""
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    tags: list[str] = Field(default_factory=list)
    date: Date
    is_recurring: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("amount")
    @classmethod
    def quantize_amount(cls: type[Transaction], v: Decimal) -> Decimal:
        return v.quantize(Decimal("0.01"))

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls: type[Transaction], v: object) -> object:
        # Rows written by older clients store tags as a JSON-encoded string.
        if v is None:
            return []
        if isinstance(v, str):
            return json.loads(v) if v.strip().startswith("[") else [v]
        return v

    @property
    def is_confirmed(self) -> bool:
        return self.status == TransactionStatus.CONFIRMED

    @property
    def is_transfer(self) -> bool:
        return (
            self.type == TransactionType.TRANSFER
            and self.transfer_account_id is not None
        )


class TransactionFilters(BaseModel):
    """Listing filters.  Every field is optional and combined with AND."""

    type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    date_from: Optional[Date] = None
    date_to: Optional[Date] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    search: Optional[str] = None
    is_recurring: Optional[bool] = None
    limit: Optional[int] = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)


class TransactionSummary(BaseModel):
    """Totals over a set of transactions.

    Totals and ``transaction_count`` cover confirmed rows only;
    ``pending_count`` reports how many rows were left out for that reason.
    ``average_transaction`` divides income plus expense by the confirmed
    count, so transfers lower the average without adding to it.
    """

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    transaction_count: int = 0
    confirmed_count: int = 0
    pending_count: int = 0
    average_transaction: Decimal = Decimal("0")
    largest_income: Decimal = Decimal("0")
    largest_expense: Decimal = Decimal("0")
