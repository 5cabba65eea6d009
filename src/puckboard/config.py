"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings

# Goalie eligibility threshold for rounds created without one.
DEFAULT_GOALIE_MIN_GAMES = 7


class Settings(BaseSettings):
    """Puckboard application configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Database
    database_url: str = "sqlite+aiosqlite:///puckboard.db"

    # Environment
    puckboard_env: str = "development"

    # Recalculation
    puckboard_recalc_lock_timeout: float = 10.0  # seconds to wait for a scope lock

    # Logging
    puckboard_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_lock_timeout(self) -> Settings:
        """Reject a non-positive lock timeout."""
        if self.puckboard_recalc_lock_timeout <= 0:
            msg = (
                "PUCKBOARD_RECALC_LOCK_TIMEOUT must be positive, "
                f"got {self.puckboard_recalc_lock_timeout}"
            )
            raise ValueError(msg)
        return self
