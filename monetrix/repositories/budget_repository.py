"""
Budget Repository.

Handles data access for the ``budgets`` table.
"""

from __future__ import annotations

from typing import Optional

from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger
from monetrix.models.budget import Budget
from monetrix.repositories.base_repository import BaseRepository
from monetrix.utils.general import convert_to_json_safe


class BudgetRepository(BaseRepository):
    """Data access layer for Budget entities."""

    TABLE = "budgets"

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    def get_all(
        self, user_id: str, reference_month: Optional[str] = None
    ) -> list[Budget]:
        """Return the user's budgets, most recent reference month first."""
        def _query() -> list[Budget]:
            query = self.supabase.table(self.TABLE).select("*").eq("user_id", user_id)
            if reference_month is not None:
                query = query.eq("reference_month", reference_month)
            response = (
                query.order("reference_month", desc=True)
                .order("category")
                .execute()
            )
            return [Budget(**row) for row in response.data or []]

        return self._remote("get_all", _query)

    def get_by_id(self, user_id: str, budget_id: str) -> Optional[Budget]:
        def _query() -> Optional[Budget]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", budget_id)
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
            if response is None or not response.data:
                return None
            return Budget(**response.data)

        return self._remote("get_by_id", _query)

    def create(self, budget: Budget) -> Budget:
        data = convert_to_json_safe(
            budget.model_dump(exclude={"id", "created_at", "updated_at"})
        )

        def _insert() -> Budget:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            return Budget(**response.data[0])

        created = self._remote("create", _insert)
        self._logger.info("Budget created: %s", created.id)
        return created

    def update(
        self, user_id: str, budget_id: str, fields: dict[str, object]
    ) -> Optional[Budget]:
        data = convert_to_json_safe(fields)

        def _update() -> Optional[Budget]:
            response = (
                self.supabase.table(self.TABLE)
                .update(data)
                .eq("id", budget_id)
                .eq("user_id", user_id)
                .execute()
            )
            return Budget(**response.data[0]) if response.data else None

        return self._remote("update", _update)

    def delete(self, user_id: str, budget_id: str) -> bool:
        def _delete() -> bool:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", budget_id)
                .eq("user_id", user_id)
                .execute()
            )
            return bool(response.data)

        return self._remote("delete", _delete)
