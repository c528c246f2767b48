"""
Shared Enumerations for Monetrix Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents, so rows read
back from Supabase (plain strings) compare directly against them.
"""

from __future__ import annotations
from enum import StrEnum


class UserRole(StrEnum):
    """Roles stored on the ``profiles`` table."""

    USER = "user"
    ADMIN = "admin"


class AccountType(StrEnum):
    """Kinds of account a user can track."""

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"
    DEBIT_CARD = "debit_card"


class Currency(StrEnum):
    """Supported currencies."""

    BRL = "BRL"
    USD = "USD"
    EUR = "EUR"


class TransactionType(StrEnum):
    """Direction of a transaction's effect on its account.

    ``TRANSFER`` debits ``account_id`` and credits ``transfer_account_id``.
    """

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(StrEnum):
    """Lifecycle state of a transaction.

    Only ``CONFIRMED`` transactions move account balances.
    """

    CONFIRMED = "confirmed"
    PENDING = "pending"


class PaymentMethod(StrEnum):
    CASH = "cash"
    DEBIT_CARD = "debit_card"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    PIX = "pix"
    CHECK = "check"
    OTHER = "other"


class BudgetPeriod(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetStatus(StrEnum):
    """``EXCEEDED`` is derived from spent > limit on every spend update."""

    ACTIVE = "active"
    EXCEEDED = "exceeded"
    PAUSED = "paused"


class GoalStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class GoalType(StrEnum):
    SAVINGS = "savings"
    INVESTMENT = "investment"
    PAYMENT = "payment"


class ReconciliationStatus(StrEnum):
    """State of a queued balance adjustment."""

    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"
