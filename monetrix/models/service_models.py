"""
Service Layer Data Transfer Objects.

Envelope and queue-entry models exchanged at service boundaries.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from monetrix.models.enums import ReconciliationStatus

T = TypeVar("T")

__all__ = [
    "ReconciliationEntry",
    "ReconciliationReport",
    "ServiceResult",
]


# ---------------------------------------------------------------------------
# Balance reconciliation
# ---------------------------------------------------------------------------

class ReconciliationEntry(BaseModel):
    """A balance adjustment whose remote call failed, awaiting retry."""

    id: int
    account_id: str
    amount_change: Decimal
    transaction_id: Optional[str] = None
    reason: str = ""
    status: ReconciliationStatus = ReconciliationStatus.PENDING
    attempts: int = 0
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    attempted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReconciliationReport(BaseModel):
    """Outcome of one pass over the reconciliation queue."""

    processed: int = 0
    applied: int = 0
    retrying: int = 0
    failed: int = 0


# ---------------------------------------------------------------------------
# Generic service models
# ---------------------------------------------------------------------------

class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All service methods return this, providing a consistent contract
    for callers.

    Generic over ``T`` so callers can annotate return types precisely
    (e.g. ``ServiceResult[Transaction]``).  Bare ``ServiceResult(...)``
    is treated by Pydantic as ``ServiceResult[Any]``.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200
