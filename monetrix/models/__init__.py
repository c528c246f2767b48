from __future__ import annotations

"""
Data Models Package.

Re-exports all Pydantic models for short imports:
    from monetrix.models import Account, Transaction, Budget, Goal, User
    from monetrix.models import TransactionType, TransactionStatus, AccountType
"""

from monetrix.models.enums import (
    AccountType,
    BudgetPeriod,
    BudgetStatus,
    Currency,
    GoalStatus,
    GoalType,
    PaymentMethod,
    ReconciliationStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
)
from monetrix.models.user import User
from monetrix.models.account import Account, AccountFilters, FinancialSummary
from monetrix.models.transaction import (
    Transaction,
    TransactionFilters,
    TransactionSummary,
)
from monetrix.models.budget import Budget, BudgetStatistics
from monetrix.models.goal import Goal, GoalStatistics
from monetrix.models.dashboard import (
    CategoryData,
    DashboardData,
    DashboardKPIs,
    MonthlyData,
)
from monetrix.models.service_models import (
    ReconciliationEntry,
    ReconciliationReport,
    ServiceResult,
)

__all__ = [
    "AccountType",
    "BudgetPeriod",
    "BudgetStatus",
    "Currency",
    "GoalStatus",
    "GoalType",
    "PaymentMethod",
    "ReconciliationStatus",
    "TransactionStatus",
    "TransactionType",
    "UserRole",
    "User",
    "Account",
    "AccountFilters",
    "FinancialSummary",
    "Transaction",
    "TransactionFilters",
    "TransactionSummary",
    "Budget",
    "BudgetStatistics",
    "Goal",
    "GoalStatistics",
    "CategoryData",
    "DashboardData",
    "DashboardKPIs",
    "MonthlyData",
    "ReconciliationEntry",
    "ReconciliationReport",
    "ServiceResult",
]
