"""
Application Configuration.

Pydantic Settings model for the Monetrix service layer.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from decimal import Decimal
from pathlib import Path
from typing import ClassVar, Optional

from pydantic_settings import BaseSettings
from pydantic import Field, SecretStr, model_validator


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # Stored procedure performing ``balance += amount_change`` server-side.
    BALANCE_RPC_NAME: str = "update_account_balance"

    # --- Local store (audit log + balance reconciliation queue) ---
    LOCAL_DB_PATH: Path = Path("monetrix_local.db")

    # --- Balance reconciliation ---
    RECONCILIATION_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    RECONCILIATION_BATCH_SIZE: int = Field(default=100, ge=1)

    # --- Reporting ---
    DASHBOARD_MONTHS: int = Field(default=6, ge=1, le=24)
    BUDGET_WARNING_THRESHOLD: Decimal = Decimal("80")

    # Category label used when a transaction has no category.
    UNCATEGORIZED_LABEL: ClassVar[str] = "Outros"

    # --- Logging ---
    LOG_FILE: str = "monetrix.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing.
        This validator logs a warning so operators know the service layer
        has no database to talk to.
        """
        _log = logging.getLogger("monetrix.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_URL / SUPABASE_ANON_KEY are empty; remote "
                "queries will fail until they are configured."
            )

        return self


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern to avoid the lock overhead on the fast path while remaining
    thread-safe during first initialisation.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
