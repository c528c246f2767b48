"""
Account Repository.

Handles data access for the ``accounts`` table and exposes the
``update_account_balance`` stored procedure.  The procedure is the only
path through which ``balance`` changes after creation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger
from monetrix.models.account import Account, AccountFilters
from monetrix.repositories.base_repository import BaseRepository
from monetrix.utils.general import convert_to_json_safe

# Columns the application may change after creation.  ``balance`` and
# ``initial_balance`` are deliberately absent.
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"name", "institution", "currency", "is_active", "reference_date"}
)


class AccountRepository(BaseRepository):
    """Data access layer for Account entities."""

    TABLE = "accounts"

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        balance_rpc_name: str = "update_account_balance",
    ) -> None:
        super().__init__(db, logger)
        self._balance_rpc_name = balance_rpc_name

    def get_all(
        self, user_id: str, filters: Optional[AccountFilters] = None
    ) -> list[Account]:
        """Return the user's accounts, optionally filtered and ordered."""
        filters = filters or AccountFilters()

        def _query() -> list[Account]:
            query = self.supabase.table(self.TABLE).select("*").eq("user_id", user_id)
            if filters.type is not None:
                query = query.eq("type", filters.type.value)
            if filters.is_active is not None:
                query = query.eq("is_active", filters.is_active)
            if filters.currency is not None:
                query = query.eq("currency", filters.currency.value)
            response = query.order(filters.order_by, desc=filters.descending).execute()
            return [Account(**row) for row in response.data or []]

        return self._remote("get_all", _query)

    def get_by_id(self, user_id: str, account_id: str) -> Optional[Account]:
        def _query() -> Optional[Account]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", account_id)
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
            # maybe_single() returns None instead of an empty response on
            # some client versions.
            if response is None or not response.data:
                return None
            return Account(**response.data)

        return self._remote("get_by_id", _query)

    def create(self, account: Account) -> Account:
        """Insert a new account.  ``balance`` starts at ``initial_balance``."""
        data = convert_to_json_safe(
            account.model_dump(exclude={"id", "created_at", "updated_at"})
        )
        data["balance"] = data["initial_balance"]

        def _insert() -> Account:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            return Account(**response.data[0])

        created = self._remote("create", _insert)
        self._logger.info("Account created: %s", created.id)
        return created

    def update(
        self, user_id: str, account_id: str, fields: dict[str, object]
    ) -> Optional[Account]:
        """Apply a partial update.  Unknown or protected keys are rejected."""
        illegal = set(fields) - UPDATABLE_FIELDS
        if illegal:
            raise ValueError(f"Fields not updatable: {sorted(illegal)}")
        data = convert_to_json_safe(fields)

        def _update() -> Optional[Account]:
            response = (
                self.supabase.table(self.TABLE)
                .update(data)
                .eq("id", account_id)
                .eq("user_id", user_id)
                .execute()
            )
            return Account(**response.data[0]) if response.data else None

        return self._remote("update", _update)

    def delete(self, user_id: str, account_id: str) -> bool:
        def _delete() -> bool:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", account_id)
                .eq("user_id", user_id)
                .execute()
            )
            return bool(response.data)

        return self._remote("delete", _delete)

    def adjust_balance(self, account_id: str, amount_change: Decimal) -> None:
        """Invoke ``balance += amount_change`` server-side.

        The amount travels as a fixed-point string so no float rounding is
        introduced on the way to the ``numeric`` column.

        Raises:
            RepositoryError: If the procedure call fails.
        """
        params = {"account_id": account_id, "amount_change": format(amount_change, "f")}

        def _call() -> None:
            self.supabase.rpc(self._balance_rpc_name, params).execute()

        self._remote(f"rpc {self._balance_rpc_name}", _call)
