"""
Budget Service.

Spending limits per category and month.  ``status`` is derived whenever
the spent amount changes: ``exceeded`` when spent > limit, otherwise
``active``.  A paused budget stays paused only until its spend is next
updated.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from monetrix.logger import StructuredLogger
from monetrix.models.budget import Budget, BudgetStatistics
from monetrix.models.enums import BudgetStatus, TransactionType
from monetrix.models.service_models import ServiceResult
from monetrix.models.user import User
from monetrix.repositories.budget_repository import BudgetRepository
from monetrix.repositories.transaction_repository import TransactionRepository
from monetrix.services.base_service import BaseService
from monetrix.utils.audit import log_audit_event
from monetrix.utils.general import month_key, shift_month
from monetrix.utils.string_helpers import normalize_keys
from monetrix.utils.validation import ValidationError, parse_amount

_HUNDRED = Decimal("100")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def usage_percentage(budget: Budget) -> Decimal:
    """Spent as a percentage of the limit, two decimal places, uncapped."""
    return (budget.spent_amount / budget.limit_amount * _HUNDRED).quantize(
        Decimal("0.01")
    )


def is_near_limit(budget: Budget, threshold: Decimal = Decimal("80")) -> bool:
    """``True`` when usage is above *threshold* but not over 100 %."""
    usage = usage_percentage(budget)
    return threshold < usage <= _HUNDRED


def is_exceeded(budget: Budget) -> bool:
    return budget.spent_amount > budget.limit_amount


def status_for_spent(spent: Decimal, limit: Decimal) -> BudgetStatus:
    return BudgetStatus.EXCEEDED if spent > limit else BudgetStatus.ACTIVE


def budget_statistics(budgets: list[Budget]) -> BudgetStatistics:
    total_limit = sum((b.limit_amount for b in budgets), Decimal("0"))
    total_spent = sum((b.spent_amount for b in budgets), Decimal("0"))
    average = (
        (total_spent / total_limit * _HUNDRED).quantize(Decimal("0.01"))
        if total_limit > 0
        else Decimal("0")
    )
    return BudgetStatistics(
        total_budgets=len(budgets),
        active_budgets=sum(1 for b in budgets if b.status == BudgetStatus.ACTIVE),
        exceeded_budgets=sum(1 for b in budgets if b.status == BudgetStatus.EXCEEDED),
        total_limit=total_limit,
        total_spent=total_spent,
        average_usage=average,
    )


class BudgetService(BaseService):
    """Service layer for Budget entities."""

    def __init__(
        self,
        repo: BudgetRepository,
        transaction_repo: TransactionRepository,
        logger: StructuredLogger,
        warning_threshold: Decimal = Decimal("80"),
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._tx_repo = transaction_repo
        self._warning_threshold = warning_threshold

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_budgets(
        self, current_user: User, reference_month: Optional[str] = None
    ) -> ServiceResult[list[Budget]]:
        try:
            return ServiceResult(
                success=True,
                data=self._repo.get_all(current_user.id, reference_month),
            )
        except Exception as exc:
            return self._failure("list_budgets", exc)

    def list_current_month(
        self, current_user: User, today: Optional[date] = None
    ) -> ServiceResult[list[Budget]]:
        return self.list_budgets(current_user, month_key(today or date.today()))

    def get_near_limit(self, current_user: User) -> ServiceResult[list[Budget]]:
        """Budgets whose usage is above the warning threshold but not over."""
        result = self.list_budgets(current_user)
        if not result.success:
            return result
        return ServiceResult(
            success=True,
            data=[b for b in result.data if is_near_limit(b, self._warning_threshold)],
        )

    def get_statistics(self, current_user: User) -> ServiceResult[BudgetStatistics]:
        result = self.list_budgets(current_user)
        if not result.success:
            return ServiceResult(
                success=False, error=result.error, status_code=result.status_code
            )
        return ServiceResult(success=True, data=budget_statistics(result.data))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_budget(
        self,
        current_user: User,
        data: dict[str, object],
        today: Optional[date] = None,
    ) -> ServiceResult[Budget]:
        """Create a budget with nothing spent.

        ``reference_month``/``reference_year`` default to the current ones.
        """
        today = today or date.today()
        try:
            fields = normalize_keys(data)
            if fields.get("limit_amount") in (None, ""):
                raise ValidationError("limit_amount", "is required")
            reference_month = fields.get("reference_month") or month_key(today)
            budget = Budget(
                user_id=current_user.id,
                category=fields.get("category", ""),
                limit_amount=parse_amount(fields["limit_amount"]),
                spent_amount=Decimal("0"),
                period=fields.get("period") or "monthly",
                reference_month=reference_month,
                reference_year=fields.get("reference_year")
                or int(str(reference_month)[:4]),
                status=BudgetStatus.ACTIVE,
            )
            created = self._repo.create(budget)
        except Exception as exc:
            return self._failure("create_budget", exc)

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type="Budget",
            entity_id=created.id or "",
            user_id=current_user.id,
            details={
                "category": created.category,
                "limit_amount": format(created.limit_amount, "f"),
                "reference_month": created.reference_month,
            },
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=created)

    def update_spent(
        self, current_user: User, budget_id: str, spent_amount: object
    ) -> ServiceResult[Budget]:
        """Set the spent amount and re-derive the status."""
        try:
            spent = parse_amount(spent_amount, allow_zero=True)
            existing = self._repo.get_by_id(current_user.id, budget_id)
            if existing is None:
                return self._not_found("Budget", budget_id)
            status = status_for_spent(spent, existing.limit_amount)
            updated = self._repo.update(
                current_user.id,
                budget_id,
                {
                    "spent_amount": spent,
                    "status": status,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
        except Exception as exc:
            return self._failure("update_spent", exc)
        if updated is None:
            return self._not_found("Budget", budget_id)

        if status == BudgetStatus.EXCEEDED and existing.status != BudgetStatus.EXCEEDED:
            self._logger.warning(
                "Budget %s (%s) exceeded: spent %s of %s",
                budget_id,
                updated.category,
                spent,
                updated.limit_amount,
            )
        log_audit_event(
            logger=self._logger,
            action="UPDATE_SPENT",
            entity_type="Budget",
            entity_id=budget_id,
            user_id=current_user.id,
            details={
                "spent_amount": format(spent, "f"),
                "old_status": existing.status.value,
                "new_status": status.value,
            },
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    def update_status(
        self, current_user: User, budget_id: str, status: BudgetStatus
    ) -> ServiceResult[Budget]:
        try:
            status = BudgetStatus(status)
            updated = self._repo.update(
                current_user.id,
                budget_id,
                {"status": status, "updated_at": datetime.now(timezone.utc)},
            )
        except Exception as exc:
            return self._failure("update_status", exc)
        if updated is None:
            return self._not_found("Budget", budget_id)

        log_audit_event(
            logger=self._logger,
            action="UPDATE_STATUS",
            entity_type="Budget",
            entity_id=budget_id,
            user_id=current_user.id,
            details={"status": status.value},
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    def delete_budget(self, current_user: User, budget_id: str) -> ServiceResult:
        try:
            deleted = self._repo.delete(current_user.id, budget_id)
        except Exception as exc:
            return self._failure("delete_budget", exc)
        if not deleted:
            return self._not_found("Budget", budget_id)

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type="Budget",
            entity_id=budget_id,
            user_id=current_user.id,
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True)

    def sync_actual_spending(
        self, current_user: User, today: Optional[date] = None
    ) -> ServiceResult[list[Budget]]:
        """Recompute ``spent_amount`` of this month's budgets from the ledger.

        Spending is the sum of confirmed expense transactions whose
        ``category_id`` equals the budget's ``category`` and whose date
        falls in the budget's reference month.  Only budgets whose figure
        changed are written.
        """
        current = self.list_current_month(current_user, today)
        if not current.success:
            return current

        synced: list[Budget] = []
        for budget in current.data:
            month_start = date.fromisoformat(f"{budget.reference_month}-01")
            try:
                transactions = self._tx_repo.get_in_period(
                    current_user.id, month_start, shift_month(month_start, 1)
                )
            except Exception as exc:
                return self._failure("sync_actual_spending", exc)

            actual = sum(
                (
                    tx.amount
                    for tx in transactions
                    if tx.type == TransactionType.EXPENSE
                    and tx.category_id == budget.category
                ),
                Decimal("0"),
            )
            if actual == budget.spent_amount:
                synced.append(budget)
                continue

            result = self.update_spent(current_user, budget.id or "", actual)
            if not result.success:
                return result
            synced.append(result.data)

        return ServiceResult(success=True, data=synced)
