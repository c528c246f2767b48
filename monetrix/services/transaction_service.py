"""
Transaction Service.

Creation, retrieval, update and deletion of transactions, keeping account
balances in step with the ledger.

Balance protocol (all calls sequential, each independently failable):

- **create**: insert the row; if confirmed, apply its effect.
- **update**: fetch the stored row; if it was confirmed, revert its effect;
  update the row; if the new state is confirmed, apply the new effect.
  If the row update fails after the revert, the original effect is
  re-applied and the failure is returned.
- **delete**: fetch, delete the row, and revert if it was confirmed.

Balance call failures never fail the operation; see
:class:`monetrix.services.balance_service.BalanceService`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from monetrix.logger import StructuredLogger
from monetrix.models.enums import TransactionStatus, TransactionType
from monetrix.models.service_models import ServiceResult
from monetrix.models.transaction import (
    Transaction,
    TransactionFilters,
    TransactionSummary,
)
from monetrix.models.user import User
from monetrix.repositories.base_repository import RepositoryError
from monetrix.repositories.transaction_repository import TransactionRepository
from monetrix.services.base_service import BaseService
from monetrix.services.balance_service import BalanceService
from monetrix.utils.audit import log_audit_event
from monetrix.utils.string_helpers import normalize_keys
from monetrix.utils.validation import (
    ValidationError,
    normalize_date,
    normalize_tags,
    parse_amount,
    require_uuid,
)

# Fields a caller may set.  ``id``, ``user_id`` and timestamps are owned by
# the service and the database.
_WRITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "type",
        "amount",
        "status",
        "account_id",
        "transfer_account_id",
        "category_id",
        "description",
        "notes",
        "payment_method",
        "tags",
        "date",
        "is_recurring",
    }
)

# Form layers send the day as ``transaction_date``.
_FIELD_ALIASES: dict[str, str] = {"transaction_date": "date"}


class TransactionService(BaseService):
    """
    Service handling transaction CRUD and the balance side effects that go
    with it.

    Dependencies are injected via __init__ -- no global state.
    """

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        balance_service: BalanceService,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._tx_repo = transaction_repo
        self._balance = balance_service

    # ------------------------------------------------------------------
    # Payload normalisation
    # ------------------------------------------------------------------

    def _normalize_payload(
        self, data: dict[str, object], partial: bool
    ) -> dict[str, object]:
        """Validate and normalise a raw payload.

        With ``partial=False`` the account, amount and date are required.
        With ``partial=True`` only the keys present are checked.

        Raises:
            ValidationError: On the first missing or malformed field.
        """
        raw = normalize_keys(data)
        for alias, target in _FIELD_ALIASES.items():
            if alias in raw and target not in raw:
                raw[target] = raw.pop(alias)

        ignored = sorted(set(raw) - _WRITABLE_FIELDS)
        if ignored:
            self._logger.debug("Ignoring non-writable transaction fields: %s", ignored)
        fields = {key: value for key, value in raw.items() if key in _WRITABLE_FIELDS}

        if not partial:
            for required in ("account_id", "amount", "date"):
                if fields.get(required) in (None, ""):
                    raise ValidationError(required, "is required")
            fields.setdefault("status", TransactionStatus.CONFIRMED)
            fields["tags"] = normalize_tags(fields.get("tags"))

        if "account_id" in fields:
            fields["account_id"] = require_uuid("account_id", fields["account_id"])
        if fields.get("transfer_account_id"):
            fields["transfer_account_id"] = require_uuid(
                "transfer_account_id", fields["transfer_account_id"]
            )
        elif "transfer_account_id" in fields:
            fields["transfer_account_id"] = None
        if "amount" in fields:
            fields["amount"] = parse_amount(fields["amount"])
        if "date" in fields:
            fields["date"] = normalize_date(fields["date"])
        if "tags" in fields:
            fields["tags"] = normalize_tags(fields["tags"])

        return fields

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_transactions(
        self,
        current_user: User,
        filters: Optional[TransactionFilters] = None,
    ) -> ServiceResult[list[Transaction]]:
        """Return the user's transactions matching *filters*, newest first."""
        try:
            items = self._tx_repo.get_filtered(current_user.id, filters)
            return ServiceResult(success=True, data=items)
        except Exception as exc:
            return self._failure("list_transactions", exc)

    def get_transaction(
        self, current_user: User, transaction_id: str
    ) -> ServiceResult[Transaction]:
        try:
            transaction = self._tx_repo.get_by_id(current_user.id, transaction_id)
        except Exception as exc:
            return self._failure("get_transaction", exc)
        if transaction is None:
            return self._not_found("Transaction", transaction_id)
        return ServiceResult(success=True, data=transaction)

    def get_by_account(
        self, current_user: User, account_id: str
    ) -> ServiceResult[list[Transaction]]:
        return self.list_transactions(
            current_user, TransactionFilters(account_id=account_id)
        )

    def get_by_category(
        self, current_user: User, category_id: str
    ) -> ServiceResult[list[Transaction]]:
        return self.list_transactions(
            current_user, TransactionFilters(category_id=category_id)
        )

    def get_pending(self, current_user: User) -> ServiceResult[list[Transaction]]:
        return self.list_transactions(
            current_user, TransactionFilters(status=TransactionStatus.PENDING)
        )

    def get_recurring(self, current_user: User) -> ServiceResult[list[Transaction]]:
        return self.list_transactions(
            current_user, TransactionFilters(is_recurring=True)
        )

    def get_summary(
        self,
        current_user: User,
        filters: Optional[TransactionFilters] = None,
    ) -> ServiceResult[TransactionSummary]:
        """Totals over the transactions matching *filters*.

        Income, expense, averages and maxima count confirmed rows only.
        Transfers count toward ``transaction_count`` but neither total.
        """
        try:
            items = self._tx_repo.get_filtered(current_user.id, filters)
        except Exception as exc:
            return self._failure("get_summary", exc)
        return ServiceResult(success=True, data=summarize(items))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_transaction(
        self,
        current_user: User,
        data: dict[str, object],
    ) -> ServiceResult[Transaction]:
        """
        Validate, insert, and apply the balance effect of a new transaction.

        Args:
            current_user: Owner of the new row.
            data: Raw payload.  ``account_id``, ``amount`` and ``date`` (or
                ``transaction_date``) are required; ``status`` defaults to
                ``confirmed``.  Amounts may be locale formatted.

        Returns:
            ServiceResult with the stored Transaction on success, ``400`` on
            validation failure (no remote call made), ``500`` when the
            insert fails (no balance change made).
        """
        try:
            fields = self._normalize_payload(data, partial=False)
            transaction = Transaction(user_id=current_user.id, **fields)
            created = self._tx_repo.create(transaction)
        except Exception as exc:
            return self._failure("create_transaction", exc)

        if created.is_confirmed:
            self._balance.apply_transaction(created, reason="create")

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type="Transaction",
            entity_id=created.id or "",
            user_id=current_user.id,
            details={
                "type": created.type.value,
                "amount": format(created.amount, "f"),
                "status": created.status.value,
                "account_id": created.account_id,
            },
            conn=self._tx_repo.sqlite,
        )
        return ServiceResult(success=True, data=created)

    def update_transaction(
        self,
        current_user: User,
        transaction_id: str,
        data: dict[str, object],
    ) -> ServiceResult[Transaction]:
        """
        Apply a partial update and move balances from the old effect to the
        new one.

        Up to four balance calls are made: revert primary, revert
        counterparty, apply primary, apply counterparty.  Editing a
        confirmed amount from A to B on one account therefore nets B - A.
        """
        try:
            existing = self._tx_repo.get_by_id(current_user.id, transaction_id)
        except Exception as exc:
            return self._failure("update_transaction", exc)
        if existing is None:
            return self._not_found("Transaction", transaction_id)

        try:
            fields = self._normalize_payload(data, partial=True)
            # Validate the merged result before any remote mutation.
            Transaction.model_validate({**existing.model_dump(), **fields})
        except Exception as exc:
            return self._failure("update_transaction", exc)

        if not fields:
            return ServiceResult(success=True, data=existing)

        if existing.is_confirmed:
            self._balance.revert_transaction(existing, reason="update revert")

        fields["updated_at"] = datetime.now(timezone.utc)
        try:
            updated = self._tx_repo.update(current_user.id, transaction_id, fields)
        except RepositoryError as exc:
            self._compensate(existing)
            return self._failure("update_transaction", exc)

        if updated is None:
            # Row vanished between the fetch and the update.
            self._compensate(existing)
            return self._not_found("Transaction", transaction_id)

        if updated.is_confirmed:
            self._balance.apply_transaction(updated, reason="update apply")

        log_audit_event(
            logger=self._logger,
            action="UPDATE",
            entity_type="Transaction",
            entity_id=transaction_id,
            user_id=current_user.id,
            details={
                "old_amount": format(existing.amount, "f"),
                "new_amount": format(updated.amount, "f"),
                "old_status": existing.status.value,
                "new_status": updated.status.value,
            },
            conn=self._tx_repo.sqlite,
        )
        return ServiceResult(success=True, data=updated)

    def delete_transaction(
        self, current_user: User, transaction_id: str
    ) -> ServiceResult[Transaction]:
        """Delete the row, then revert its effect if it was confirmed.

        Returns the deleted transaction as it was stored.
        """
        try:
            existing = self._tx_repo.get_by_id(current_user.id, transaction_id)
            if existing is None:
                return self._not_found("Transaction", transaction_id)
            deleted = self._tx_repo.delete(current_user.id, transaction_id)
        except Exception as exc:
            return self._failure("delete_transaction", exc)
        if not deleted:
            return self._not_found("Transaction", transaction_id)

        if existing.is_confirmed:
            self._balance.revert_transaction(existing, reason="delete")

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type="Transaction",
            entity_id=transaction_id,
            user_id=current_user.id,
            details={
                "type": existing.type.value,
                "amount": format(existing.amount, "f"),
                "status": existing.status.value,
            },
            conn=self._tx_repo.sqlite,
        )
        return ServiceResult(success=True, data=existing)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _compensate(self, existing: Transaction) -> None:
        """Re-apply the effect reverted before a failed row update."""
        if existing.is_confirmed:
            self._logger.error(
                "Update of transaction %s failed after its balance effect was "
                "reverted; re-applying the original effect.",
                existing.id,
            )
            self._balance.apply_transaction(existing, reason="update compensation")


def summarize(transactions: list[Transaction]) -> TransactionSummary:
    """Aggregate *transactions* into a :class:`TransactionSummary`."""
    confirmed = [tx for tx in transactions if tx.is_confirmed]
    incomes = [tx.amount for tx in confirmed if tx.type == TransactionType.INCOME]
    expenses = [tx.amount for tx in confirmed if tx.type == TransactionType.EXPENSE]

    total_income = sum(incomes, Decimal("0"))
    total_expense = sum(expenses, Decimal("0"))
    # Transfers count towards the row count but not the average numerator.
    average = (
        ((total_income + total_expense) / len(confirmed)).quantize(Decimal("0.01"))
        if confirmed
        else Decimal("0")
    )

    return TransactionSummary(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
        transaction_count=len(confirmed),
        confirmed_count=len(confirmed),
        pending_count=sum(1 for tx in transactions if tx.status == TransactionStatus.PENDING),
        average_transaction=average,
        largest_income=max(incomes, default=Decimal("0")),
        largest_expense=max(expenses, default=Decimal("0")),
    )
