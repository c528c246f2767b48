"""
Transaction Repository.

Handles all transaction data access via Supabase.  Rows are always
scoped by ``user_id`` on top of the database's row-level security.
Balance side effects are NOT handled here; see
:class:`monetrix.services.balance_service.BalanceService`.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Callable, Optional

from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger
from monetrix.models.enums import TransactionStatus
from monetrix.models.transaction import Transaction, TransactionFilters
from monetrix.repositories.base_repository import BaseRepository
from monetrix.utils.general import convert_to_json_safe
from monetrix.utils.string_helpers import sanitize_postgrest_value

# PostgREST caps every response at its max-rows setting (1000 by default),
# so unbounded reads are fetched page by page.
_PAGE_SIZE: int = 1000


class TransactionRepository(BaseRepository):
    """Data access layer for Transaction entities."""

    TABLE = "transactions"
    PAGE_SIZE = _PAGE_SIZE

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: str, transaction_id: str) -> Optional[Transaction]:
        def _query() -> Optional[Transaction]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", transaction_id)
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
            if response is None or not response.data:
                return None
            return self._to_model(response.data)

        return self._remote("get_by_id", _query)

    def get_filtered(
        self, user_id: str, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        """Fetch transactions matching *filters*, newest first.

        ``search`` is matched case-insensitively against ``description`` and
        ``notes``.  ``limit``/``offset`` page through the ordered result.
        """
        filters = filters or TransactionFilters()

        def _build():
            query = self.supabase.table(self.TABLE).select("*").eq("user_id", user_id)

            if filters.type is not None:
                query = query.eq("type", filters.type.value)
            if filters.status is not None:
                query = query.eq("status", filters.status.value)
            if filters.account_id:
                query = query.eq("account_id", filters.account_id)
            if filters.category_id:
                query = query.eq("category_id", filters.category_id)
            if filters.payment_method is not None:
                query = query.eq("payment_method", filters.payment_method.value)
            if filters.date_from is not None:
                query = query.gte("date", filters.date_from.isoformat())
            if filters.date_to is not None:
                query = query.lte("date", filters.date_to.isoformat())
            if filters.amount_min is not None:
                query = query.gte("amount", format(filters.amount_min, "f"))
            if filters.amount_max is not None:
                query = query.lte("amount", format(filters.amount_max, "f"))
            if filters.is_recurring is not None:
                query = query.eq("is_recurring", filters.is_recurring)
            if filters.search:
                safe_search = sanitize_postgrest_value(filters.search).strip()
                if safe_search:
                    query = query.or_(
                        f"description.ilike.%{safe_search}%,"
                        f"notes.ilike.%{safe_search}%"
                    )

            return query.order("date", desc=True).order("created_at", desc=True)

        def _query() -> list[Transaction]:
            if filters.limit is not None:
                response = _build().range(
                    filters.offset, filters.offset + filters.limit - 1
                ).execute()
                return [self._to_model(row) for row in response.data or []]
            return self._fetch_all(_build, start=filters.offset)

        return self._remote("get_filtered", _query)

    def get_in_period(
        self,
        user_id: str,
        start: date,
        end: date,
        status: Optional[TransactionStatus] = TransactionStatus.CONFIRMED,
    ) -> list[Transaction]:
        """Fetch every transaction dated in ``[start, end)``.

        Used by the reporting paths, which aggregate in Python.
        """
        def _build():
            query = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("user_id", user_id)
                .gte("date", start.isoformat())
                .lt("date", end.isoformat())
            )
            if status is not None:
                query = query.eq("status", status.value)
            return query.order("date").order("created_at")

        return self._remote("get_in_period", lambda: self._fetch_all(_build))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, transaction: Transaction) -> Transaction:
        """Insert a new transaction row and return it as stored."""
        data = self._serialize(
            transaction.model_dump(exclude={"id", "created_at", "updated_at"})
        )

        def _insert() -> Transaction:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            return self._to_model(response.data[0])

        created = self._remote("create", _insert)
        self._logger.info("Transaction created: %s", created.id)
        return created

    def update(
        self, user_id: str, transaction_id: str, fields: dict[str, object]
    ) -> Optional[Transaction]:
        """Apply a partial update and return the stored row, or ``None``
        when no row matched."""
        data = self._serialize(fields)

        def _update() -> Optional[Transaction]:
            response = (
                self.supabase.table(self.TABLE)
                .update(data)
                .eq("id", transaction_id)
                .eq("user_id", user_id)
                .execute()
            )
            return self._to_model(response.data[0]) if response.data else None

        return self._remote("update", _update)

    def delete(self, user_id: str, transaction_id: str) -> bool:
        def _delete() -> bool:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", transaction_id)
                .eq("user_id", user_id)
                .execute()
            )
            return bool(response.data)

        return self._remote("delete", _delete)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _fetch_all(self, build: Callable, start: int = 0) -> list[Transaction]:
        """Run the query made by *build* page by page until a short page."""
        items: list[Transaction] = []
        while True:
            response = build().range(start, start + self.PAGE_SIZE - 1).execute()
            rows = response.data or []
            items.extend(self._to_model(row) for row in rows)
            if len(rows) < self.PAGE_SIZE:
                return items
            start += len(rows)

    def _to_model(self, row: dict[str, object]) -> Transaction:
        """Build a :class:`Transaction` from a row, tolerating corrupt tags.

        A ``tags`` text that is not valid JSON is read as no tags so the
        row stays listable and deletable.
        """
        tags = row.get("tags")
        if isinstance(tags, str) and tags.strip().startswith("["):
            try:
                row = {**row, "tags": json.loads(tags)}
            except json.JSONDecodeError:
                self._logger.warning(
                    "Transaction %s has malformed tags %r; reading them as empty.",
                    row.get("id"),
                    tags,
                    extra={"transaction_id": row.get("id")},
                )
                row = {**row, "tags": []}
        return Transaction(**row)

    @staticmethod
    def _serialize(fields: dict[str, object]) -> dict[str, object]:
        """Prepare a dict for the PostgREST payload.

        ``tags`` is stored as a JSON-encoded text column.
        """
        data = convert_to_json_safe(fields)
        if "tags" in data:
            data["tags"] = json.dumps(data["tags"] or [], ensure_ascii=False)
        return data
