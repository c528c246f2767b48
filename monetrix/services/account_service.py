"""
Account Service.

Account CRUD plus the net-worth roll-up.  ``balance`` is read-only here:
it is set from ``initial_balance`` on creation and afterwards moved only
by :class:`monetrix.services.balance_service.BalanceService`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from monetrix.logger import StructuredLogger
from monetrix.models.account import Account, AccountFilters, FinancialSummary
from monetrix.models.enums import AccountType
from monetrix.models.service_models import ServiceResult
from monetrix.models.user import User
from monetrix.repositories.account_repository import (
    UPDATABLE_FIELDS,
    AccountRepository,
)
from monetrix.services.base_service import BaseService
from monetrix.utils.audit import log_audit_event
from monetrix.utils.string_helpers import normalize_keys
from monetrix.utils.validation import parse_amount

_TYPE_FIELDS: dict[AccountType, str] = {
    AccountType.CHECKING: "checking_balance",
    AccountType.SAVINGS: "savings_balance",
    AccountType.CREDIT_CARD: "credit_card_balance",
    AccountType.INVESTMENT: "investment_balance",
    AccountType.DEBIT_CARD: "debit_card_balance",
}


class AccountService(BaseService):
    """Service layer for Account entities."""

    def __init__(self, repo: AccountRepository, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._repo = repo

    def list_accounts(
        self,
        current_user: User,
        filters: Optional[AccountFilters] = None,
    ) -> ServiceResult[list[Account]]:
        try:
            return ServiceResult(
                success=True, data=self._repo.get_all(current_user.id, filters)
            )
        except Exception as exc:
            return self._failure("list_accounts", exc)

    def get_account(self, current_user: User, account_id: str) -> ServiceResult[Account]:
        try:
            account = self._repo.get_by_id(current_user.id, account_id)
        except Exception as exc:
            return self._failure("get_account", exc)
        if account is None:
            return self._not_found("Account", account_id)
        return ServiceResult(success=True, data=account)

    def create_account(
        self, current_user: User, data: dict[str, object]
    ) -> ServiceResult[Account]:
        """Create an account.  The stored balance starts at ``initial_balance``.

        ``initial_balance`` may be negative (credit cards) and may be locale
        formatted.
        """
        try:
            fields = normalize_keys(data)
            initial = _parse_signed(fields.get("initial_balance"))
            account = Account(
                user_id=current_user.id,
                name=fields.get("name", ""),
                type=fields.get("type"),
                institution=fields.get("institution"),
                currency=fields.get("currency") or current_user.currency,
                initial_balance=initial,
                balance=initial,
                is_active=fields.get("is_active", True),
                reference_date=fields.get("reference_date"),
            )
            created = self._repo.create(account)
        except Exception as exc:
            return self._failure("create_account", exc)

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type="Account",
            entity_id=created.id or "",
            user_id=current_user.id,
            details={
                "name": created.name,
                "type": created.type.value,
                "initial_balance": format(created.initial_balance, "f"),
            },
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=created)

    def update_account(
        self, current_user: User, account_id: str, data: dict[str, object]
    ) -> ServiceResult[Account]:
        """Update descriptive fields.  Attempts to set ``balance`` or
        ``initial_balance`` are rejected with ``400``."""
        try:
            fields = normalize_keys(data)
            protected = sorted(set(fields) - UPDATABLE_FIELDS)
            if protected:
                return ServiceResult(
                    success=False,
                    error=f"Fields cannot be updated: {', '.join(protected)}",
                    status_code=400,
                )
            existing = self._repo.get_by_id(current_user.id, account_id)
            if existing is None:
                return self._not_found("Account", account_id)
            # Validate the merged row before writing.
            Account.model_validate({**existing.model_dump(), **fields})
            updated = self._repo.update(current_user.id, account_id, fields)
        except Exception as exc:
            return self._failure("update_account", exc)
        if updated is None:
            return self._not_found("Account", account_id)

        log_audit_event(
            logger=self._logger,
            action="UPDATE",
            entity_type="Account",
            entity_id=account_id,
            user_id=current_user.id,
            details={key: str(value) for key, value in fields.items()},
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    def toggle_active(self, current_user: User, account_id: str) -> ServiceResult[Account]:
        try:
            existing = self._repo.get_by_id(current_user.id, account_id)
            if existing is None:
                return self._not_found("Account", account_id)
            updated = self._repo.update(
                current_user.id, account_id, {"is_active": not existing.is_active}
            )
        except Exception as exc:
            return self._failure("toggle_active", exc)
        if updated is None:
            return self._not_found("Account", account_id)

        log_audit_event(
            logger=self._logger,
            action="TOGGLE_ACTIVE",
            entity_type="Account",
            entity_id=account_id,
            user_id=current_user.id,
            details={"is_active": updated.is_active},
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    def delete_account(self, current_user: User, account_id: str) -> ServiceResult:
        try:
            deleted = self._repo.delete(current_user.id, account_id)
        except Exception as exc:
            return self._failure("delete_account", exc)
        if not deleted:
            return self._not_found("Account", account_id)

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type="Account",
            entity_id=account_id,
            user_id=current_user.id,
            conn=self._repo.sqlite,
        )
        return ServiceResult(success=True)

    def get_financial_summary(self, current_user: User) -> ServiceResult[FinancialSummary]:
        """Roll up balances by account type.

        Inactive accounts are counted but contribute no money.
        """
        try:
            accounts = self._repo.get_all(current_user.id)
        except Exception as exc:
            return self._failure("get_financial_summary", exc)
        return ServiceResult(success=True, data=summarize_accounts(accounts))


def summarize_accounts(accounts: list[Account]) -> FinancialSummary:
    summary = FinancialSummary()
    for account in accounts:
        if not account.is_active:
            summary.inactive_accounts += 1
            continue
        summary.active_accounts += 1
        summary.total_balance += account.balance
        field = _TYPE_FIELDS[account.type]
        setattr(summary, field, getattr(summary, field) + account.balance)
        if account.is_credit_card:
            summary.total_debts += abs(account.balance)
        else:
            summary.total_assets += account.balance
    summary.net_worth = summary.total_assets - summary.total_debts
    return summary


def _parse_signed(value: object) -> Decimal:
    """Parse an opening balance, which unlike a transaction amount may be
    zero or negative."""
    if value in (None, ""):
        return Decimal("0")
    text = str(value).strip()
    negative = text.startswith("-")
    if negative:
        text = text[1:]
    amount = parse_amount(text, allow_zero=True)
    return -amount if negative else amount
