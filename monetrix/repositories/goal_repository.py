"""
Goal Repository.

Handles data access for the ``goals`` table.
"""

from __future__ import annotations

from typing import Optional

from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger
from monetrix.models.enums import GoalStatus
from monetrix.models.goal import Goal
from monetrix.repositories.base_repository import BaseRepository
from monetrix.utils.general import convert_to_json_safe


class GoalRepository(BaseRepository):
    """Data access layer for Goal entities."""

    TABLE = "goals"

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    def get_all(
        self, user_id: str, status: Optional[GoalStatus] = None
    ) -> list[Goal]:
        """Return the user's goals ordered by deadline."""
        def _query() -> list[Goal]:
            query = self.supabase.table(self.TABLE).select("*").eq("user_id", user_id)
            if status is not None:
                query = query.eq("status", status.value)
            response = query.order("end_date").execute()
            return [Goal(**row) for row in response.data or []]

        return self._remote("get_all", _query)

    def get_by_id(self, user_id: str, goal_id: str) -> Optional[Goal]:
        def _query() -> Optional[Goal]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", goal_id)
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
            if response is None or not response.data:
                return None
            return Goal(**response.data)

        return self._remote("get_by_id", _query)

    def create(self, goal: Goal) -> Goal:
        data = convert_to_json_safe(
            goal.model_dump(exclude={"id", "created_at", "updated_at"})
        )

        def _insert() -> Goal:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            return Goal(**response.data[0])

        created = self._remote("create", _insert)
        self._logger.info("Goal created: %s", created.id)
        return created

    def update(
        self, user_id: str, goal_id: str, fields: dict[str, object]
    ) -> Optional[Goal]:
        data = convert_to_json_safe(fields)

        def _update() -> Optional[Goal]:
            response = (
                self.supabase.table(self.TABLE)
                .update(data)
                .eq("id", goal_id)
                .eq("user_id", user_id)
                .execute()
            )
            return Goal(**response.data[0]) if response.data else None

        return self._remote("update", _update)

    def delete(self, user_id: str, goal_id: str) -> bool:
        def _delete() -> bool:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", goal_id)
                .eq("user_id", user_id)
                .execute()
            )
            return bool(response.data)

        return self._remote("delete", _delete)
