"""
Base Service Class.

Minimal base class standardizing the logger pattern for all services and
the translation of exceptions into ``ServiceResult`` failures.
"""

from __future__ import annotations

from monetrix.logger import StructuredLogger
from monetrix.models.service_models import ServiceResult


class BaseService:
    """Base class for all service classes. Provides a logger."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger

    def _failure(self, operation: str, exc: Exception) -> ServiceResult:
        """Log *exc* and wrap it in a failed ``ServiceResult``.

        Validation problems map to ``400``: both
        ``monetrix.utils.validation.ValidationError`` and pydantic's
        ``ValidationError`` are ``ValueError`` subclasses.
        ``RepositoryError`` and anything unexpected map to ``500``.
        """
        if isinstance(exc, ValueError):
            self._logger.warning("Validation failed for %s: %s", operation, exc)
            return ServiceResult(success=False, error=str(exc), status_code=400)

        self._logger.error("Error during %s: %s", operation, exc, exc_info=True)
        return ServiceResult(
            success=False,
            error=f"Error during {operation}: {exc}",
            status_code=500,
        )

    @staticmethod
    def _not_found(entity: str, entity_id: str) -> ServiceResult:
        return ServiceResult(
            success=False,
            error=f"{entity} {entity_id} not found",
            status_code=404,
        )
