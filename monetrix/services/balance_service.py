"""
Balance Service.

Applies and reverts the monetary effect of transactions on the stored
account balances, and replays adjustments that could not be applied.

Effect of a confirmed transaction::

    income   : account_id          += amount
    expense  : account_id          -= amount
    transfer : account_id          -= amount
               transfer_account_id += amount   (a second, independent call)

Every adjustment is one call to the ``update_account_balance`` stored
procedure.  A failed call never fails the calling operation: it is logged
as a warning and written to the local reconciliation queue, which
:meth:`BalanceService.process_pending` replays later.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from monetrix.logger import StructuredLogger
from monetrix.models.enums import ReconciliationStatus, TransactionType
from monetrix.models.service_models import ReconciliationReport, ServiceResult
from monetrix.models.transaction import Transaction
from monetrix.repositories.account_repository import AccountRepository
from monetrix.repositories.base_repository import RepositoryError
from monetrix.repositories.reconciliation_repository import ReconciliationRepository
from monetrix.services.base_service import BaseService
from monetrix.utils.audit import log_audit_event


def signed_delta(amount: Decimal, tx_type: TransactionType) -> Decimal:
    """``+amount`` for income, ``-amount`` for expense and transfer."""
    return amount if tx_type == TransactionType.INCOME else -amount


class BalanceService(BaseService):
    """Owns every write to ``accounts.balance``."""

    def __init__(
        self,
        account_repo: AccountRepository,
        reconciliation_repo: ReconciliationRepository,
        logger: StructuredLogger,
        max_attempts: int = 5,
        batch_size: int = 100,
    ) -> None:
        super().__init__(logger)
        self._account_repo = account_repo
        self._queue_repo = reconciliation_repo
        self._max_attempts = max_attempts
        self._batch_size = batch_size

    # ------------------------------------------------------------------
    # Single adjustment
    # ------------------------------------------------------------------

    def apply_effect(
        self,
        account_id: str,
        amount: Decimal,
        tx_type: TransactionType,
        *,
        transaction_id: Optional[str] = None,
        reason: str = "apply",
    ) -> bool:
        """Move *account_id*'s balance by the signed effect of *amount*.

        Pass a negated *amount* with the original *tx_type* to revert.

        Returns:
            ``True`` when the remote call succeeded, ``False`` when it
            failed and the adjustment was queued for reconciliation.
        """
        delta = signed_delta(amount, tx_type)
        log = self._logger.bind(
            account_id=account_id, transaction_id=transaction_id, delta=delta, reason=reason
        )
        try:
            self._account_repo.adjust_balance(account_id, delta)
        except RepositoryError as exc:
            log.warning("Balance adjustment failed; queued for reconciliation: %s", exc)
            self._enqueue(account_id, delta, transaction_id, reason, str(exc))
            return False

        log.debug("Balance adjusted")
        return True

    # ------------------------------------------------------------------
    # Whole-transaction effects
    # ------------------------------------------------------------------

    def apply_transaction(self, transaction: Transaction, reason: str = "apply") -> None:
        """Apply *transaction*'s effect on its account and counterparty.

        Callers check ``transaction.is_confirmed`` first; pending
        transactions have no effect.
        """
        self.apply_effect(
            transaction.account_id,
            transaction.amount,
            transaction.type,
            transaction_id=transaction.id,
            reason=reason,
        )
        if transaction.is_transfer:
            self.apply_effect(
                transaction.transfer_account_id,
                transaction.amount,
                TransactionType.INCOME,
                transaction_id=transaction.id,
                reason=f"{reason} (transfer credit)",
            )

    def revert_transaction(self, transaction: Transaction, reason: str = "revert") -> None:
        """Undo a previously applied effect: same type, negated amount."""
        self.apply_effect(
            transaction.account_id,
            -transaction.amount,
            transaction.type,
            transaction_id=transaction.id,
            reason=reason,
        )
        if transaction.is_transfer:
            self.apply_effect(
                transaction.transfer_account_id,
                -transaction.amount,
                TransactionType.INCOME,
                transaction_id=transaction.id,
                reason=f"{reason} (transfer credit)",
            )

    # ------------------------------------------------------------------
    # Reconciliation queue
    # ------------------------------------------------------------------

    def process_pending(
        self, max_attempts: Optional[int] = None
    ) -> ServiceResult[ReconciliationReport]:
        """Replay queued adjustments once each, oldest first.

        An entry that succeeds is marked ``applied`` and never replayed
        again.  An entry that fails has its attempt counter incremented and
        becomes ``failed`` once *max_attempts* is reached.
        """
        limit = max_attempts or self._max_attempts
        report = ReconciliationReport()

        try:
            entries = self._queue_repo.get_pending(limit=self._batch_size)
        except Exception as exc:
            return self._failure("process_pending", exc)

        for entry in entries:
            report.processed += 1
            try:
                self._account_repo.adjust_balance(entry.account_id, entry.amount_change)
            except RepositoryError as exc:
                status = self._queue_repo.mark_attempt_failed(entry.id, str(exc), limit)
                if status == ReconciliationStatus.FAILED:
                    report.failed += 1
                    self._logger.error(
                        "Balance adjustment %d abandoned after %d attempts: %s",
                        entry.id,
                        limit,
                        exc,
                        extra={
                            "queue_id": entry.id,
                            "account_id": entry.account_id,
                            "transaction_id": entry.transaction_id,
                            "delta": entry.amount_change,
                        },
                    )
                else:
                    report.retrying += 1
                continue

            self._queue_repo.mark_applied(entry.id)
            report.applied += 1
            log_audit_event(
                logger=self._logger,
                action="RECONCILE",
                entity_type="Account",
                entity_id=entry.account_id,
                user_id="system",
                details={
                    "queue_id": entry.id,
                    "amount_change": format(entry.amount_change, "f"),
                    "transaction_id": entry.transaction_id,
                },
                conn=self._queue_repo.sqlite,
            )

        if report.processed:
            self._logger.info(
                "Reconciliation pass complete: %d processed, %d applied, "
                "%d retrying, %d failed.",
                report.processed,
                report.applied,
                report.retrying,
                report.failed,
            )
        return ServiceResult(success=True, data=report)

    def _enqueue(
        self,
        account_id: str,
        delta: Decimal,
        transaction_id: Optional[str],
        reason: str,
        error_message: str,
    ) -> None:
        try:
            self._queue_repo.enqueue(
                account_id=account_id,
                amount_change=delta,
                transaction_id=transaction_id,
                reason=reason,
                error_message=error_message,
            )
        except RepositoryError:
            # Both stores are unreachable; the log line is all that is left.
            self._logger.error(
                "Lost balance adjustment: account=%s delta=%s transaction=%s",
                account_id,
                delta,
                transaction_id,
            )
