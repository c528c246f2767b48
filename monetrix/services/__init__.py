"""
Business Logic Services Package.

Services depend on the Repository layer for data access and receive the
calling ``User`` explicitly on every public method.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the application layer can consume without
knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from monetrix.config import AppConfig
from monetrix.database import DatabaseManager
from monetrix.logger import get_logger
from monetrix.repositories.account_repository import AccountRepository
from monetrix.repositories.budget_repository import BudgetRepository
from monetrix.repositories.goal_repository import GoalRepository
from monetrix.repositories.reconciliation_repository import ReconciliationRepository
from monetrix.repositories.transaction_repository import TransactionRepository
from monetrix.services.account_service import AccountService
from monetrix.services.balance_service import BalanceService
from monetrix.services.budget_service import BudgetService
from monetrix.services.dashboard_service import DashboardService
from monetrix.services.goal_service import GoalService
from monetrix.services.transaction_service import TransactionService


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    account_service: AccountService
    balance_service: BalanceService
    transaction_service: TransactionService
    budget_service: BudgetService
    goal_service: GoalService
    dashboard_service: DashboardService


def create_services(db: DatabaseManager, config: AppConfig) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    entry-point calls this once at startup.

    Args:
        db: Initialised DatabaseManager with Supabase + SQLite ready.
        config: Application configuration (injected into services that need it).

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    account_repo = AccountRepository(
        db=db, logger=logger, balance_rpc_name=config.BALANCE_RPC_NAME,
    )
    transaction_repo = TransactionRepository(db=db, logger=logger)
    budget_repo = BudgetRepository(db=db, logger=logger)
    goal_repo = GoalRepository(db=db, logger=logger)
    reconciliation_repo = ReconciliationRepository(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Leaf services (no service dependencies)
    # ------------------------------------------------------------------
    balance_service = BalanceService(
        account_repo=account_repo,
        reconciliation_repo=reconciliation_repo,
        logger=logger,
        max_attempts=config.RECONCILIATION_MAX_ATTEMPTS,
        batch_size=config.RECONCILIATION_BATCH_SIZE,
    )
    account_service = AccountService(repo=account_repo, logger=logger)
    goal_service = GoalService(repo=goal_repo, logger=logger)
    dashboard_service = DashboardService(
        repo=transaction_repo,
        logger=logger,
        months=config.DASHBOARD_MONTHS,
    )
    budget_service = BudgetService(
        repo=budget_repo,
        transaction_repo=transaction_repo,
        logger=logger,
        warning_threshold=config.BUDGET_WARNING_THRESHOLD,
    )

    # ------------------------------------------------------------------
    # 3. Orchestration services (depend on other services)
    # ------------------------------------------------------------------
    transaction_service = TransactionService(
        transaction_repo=transaction_repo,
        balance_service=balance_service,
        logger=logger,
    )

    return ServiceContainer(
        account_service=account_service,
        balance_service=balance_service,
        transaction_service=transaction_service,
        budget_service=budget_service,
        goal_service=goal_service,
        dashboard_service=dashboard_service,
    )
