"""
Goal Service.

Savings, investment and payment targets with progress tracking.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from monetrix.logger import StructuredLogger
from monetrix.models.enums import GoalStatus
from monetrix.models.goal import Goal, GoalStatistics
from monetrix.models.service_models import ServiceResult
from monetrix.models.user import User
from monetrix.repositories.goal_repository import GoalRepository
from monetrix.services.base_service import BaseService
from monetrix.utils.audit import log_audit_event
from monetrix.utils.string_helpers import normalize_keys
from monetrix.utils.validation import ValidationError, normalize_date, parse_amount

_HUNDRED = Decimal("100")


def progress_percentage(goal: Goal) -> Decimal:
    """Current as a percentage of target, capped at 100."""
    raw = goal.current_amount / goal.target_amount * _HUNDRED
    return min(raw, _HUNDRED).quantize(Decimal("0.01"))


def is_reached(goal: Goal) -> bool:
    return goal.current_amount >= goal.target_amount


def goal_statistics(goals: list[Goal]) -> GoalStatistics:
    total_target = sum((g.target_amount for g in goals), Decimal("0"))
    total_current = sum((g.current_amount for g in goals), Decimal("0"))
    overall = (
        (total_current / total_target * _HUNDRED).quantize(Decimal("0.01"))
        if total_target > 0
        else Decimal("0")
    )
    return GoalStatistics(
        total_goals=len(goals),
        active_goals=sum(1 for g in goals if g.status == GoalStatus.ACTIVE),
        completed_goals=sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
        total_target=total_target,
        total_current=total_current,
        overall_progress=overall,
    )


class GoalService(BaseService):
    """Service layer for Goal entities."""

    def __init__(self, repo: GoalRepository, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._repo = repo

    def list_goals(
        self, current_user: User, status: Optional[GoalStatus] = None
    ) -> ServiceResult[list[Goal]]:
        try:
            return ServiceResult(
                success=True, data=self._repo.get_all(current_user.id, status)
            )
        except Exception as exc:
            return self._failure("list_goals", exc)

    def get_statistics(self, current_user: User) -> ServiceResult[GoalStatistics]:
        result = self.list_goals(current_user)
        if not result.success:
            return ServiceResult(
                success=False, error=result.error, status_code=result.status_code
            )
        return ServiceResult(success=True, data=goal_statistics(result.data))

    def create_goal(self, current_user: User, data: dict[str, object]) -> ServiceResult[Goal]:
        """Create a goal with nothing saved yet and status ``active``."""
        try:
            fields = normalize_keys(data)
            for required in ("target_amount", "start_date", "end_date"):
                if fields.get(required) in (None, ""):
                    raise ValidationError(required, "is required")
            goal = Goal(
                user_id=current_user.id,
                title=fields.get("title", ""),
                description=fields.get("description"),
                target_amount=parse_amount(fields["target_amount"]),
                current_amount=Decimal("0"),
                category=fields.get("category"),
                start_date=normalize_date(fields["start_date"]),
                end_date=normalize_date(fields["end_date"]),
                status=GoalStatus.ACTIVE,
                goal_type=fields.get("goal_type") or "savings",
            )
            created = self._repo.create(goal)
        except Exception as exc:
            return self._failure("create_goal", exc)

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type="Goal",
            entity_id=created.id or "",
            user_id=current_user.id,
            details={
                "title": created.title,
                "target_amount": format(created.target_amount, "f"),
            },
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=created)

    def update_current_amount(
        self, current_user: User, goal_id: str, current_amount: object
    ) -> ServiceResult[Goal]:
        """Record progress.  Reaching the target does not change ``status``."""
        try:
            amount = parse_amount(current_amount, allow_zero=True)
            updated = self._repo.update(
                current_user.id,
                goal_id,
                {"current_amount": amount, "updated_at": datetime.now(timezone.utc)},
            )
        except Exception as exc:
            return self._failure("update_current_amount", exc)
        if updated is None:
            return self._not_found("Goal", goal_id)

        if is_reached(updated):
            self._logger.info("Goal %s reached its target.", goal_id)
        log_audit_event(
            logger=self._logger,
            action="UPDATE_AMOUNT",
            entity_type="Goal",
            entity_id=goal_id,
            user_id=current_user.id,
            details={"current_amount": format(amount, "f")},
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    def update_status(
        self, current_user: User, goal_id: str, status: GoalStatus
    ) -> ServiceResult[Goal]:
        try:
            status = GoalStatus(status)
            updated = self._repo.update(
                current_user.id,
                goal_id,
                {"status": status, "updated_at": datetime.now(timezone.utc)},
            )
        except Exception as exc:
            return self._failure("update_status", exc)
        if updated is None:
            return self._not_found("Goal", goal_id)

        log_audit_event(
            logger=self._logger,
            action="UPDATE_STATUS",
            entity_type="Goal",
            entity_id=goal_id,
            user_id=current_user.id,
            details={"status": status.value},
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    def delete_goal(self, current_user: User, goal_id: str) -> ServiceResult:
        try:
            deleted = self._repo.delete(current_user.id, goal_id)
        except Exception as exc:
            return self._failure("delete_goal", exc)
        if not deleted:
            return self._not_found("Goal", goal_id)

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type="Goal",
            entity_id=goal_id,
            user_id=current_user.id,
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True)
