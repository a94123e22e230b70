"""
Application Configuration.

Pydantic Settings model for the Qcheck application.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Collections ---
    FMEA_TABLE: str = "fmea_records"
    PROFILES_TABLE: str = "users"

    # --- Accounts ---
    DEFAULT_USER_ROLE: str = "User"

    # --- Export ---
    EXPORT_DIR: str = "."

    # --- Logging ---
    LOG_FILE: str = "qcheck.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators get a log line telling them the app has no backend.
        """
        _log = logging.getLogger("qcheck.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL:
            _log.warning(
                "SUPABASE_URL is empty: record store and sign-in are disabled. "
                "Reads will return no records and writes will fail."
            )

        return self

    @property
    def is_backend_configured(self) -> bool:
        """``True`` when both the project URL and the anon key are set."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY.get_secret_value())


# ---------------------------------------------------------------------------
# Module-level cached factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` instance.

    On first call, creates an ``AppConfig`` (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern so the lock is only taken during first initialisation.

    Prefer constructor injection of ``AppConfig`` in new code; this
    factory exists for modules such as the logger that have no other
    route to configuration.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
