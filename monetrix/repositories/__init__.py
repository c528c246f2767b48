"""
Repository Layer Package.

Provides data-access abstractions over Supabase (entity tables and the
balance procedure) and SQLite (local reconciliation queue).
All database operations flow through repositories; services never access
db.supabase or db.sqlite directly.

Usage:
    from monetrix.repositories.transaction_repository import TransactionRepository
    from monetrix.repositories.account_repository import AccountRepository
"""

from monetrix.repositories.base_repository import BaseRepository, RepositoryError
from monetrix.repositories.account_repository import AccountRepository
from monetrix.repositories.transaction_repository import TransactionRepository
from monetrix.repositories.budget_repository import BudgetRepository
from monetrix.repositories.goal_repository import GoalRepository
from monetrix.repositories.reconciliation_repository import ReconciliationRepository

__all__ = [
    "BaseRepository",
    "RepositoryError",
    "AccountRepository",
    "TransactionRepository",
    "BudgetRepository",
    "GoalRepository",
    "ReconciliationRepository",
]
