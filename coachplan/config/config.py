"""
Centralised config for the plan reconciliation service.

This module consolidates all configuration settings, loading sensitive values
from environment variables and providing typed, validated access to them
through a singleton `settings` object.
"""

import os
from pathlib import Path
from typing import Optional

from psycopg.conninfo import make_conninfo
from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE = Path(__file__).resolve()


def _discover_project_root(config_file: Path) -> tuple[Path, Path]:
    """Return a project root and env file path without assuming ``.env`` exists.

    Deployments keep a ``.env`` file alongside the repository, but it is
    absent in development and CI. Walk the parents looking for one and fall
    back to the repository root (detected via common project markers).
    """

    parents = list(config_file.parents)

    for parent in parents:
        env_file = parent / ".env"
        if env_file.exists():
            return parent, env_file

    for marker in ("pyproject.toml", ".git"):
        for parent in parents:
            if (parent / marker).exists():
                return parent, parent / ".env"

    fallback_root = parents[1] if len(parents) > 1 else parents[0]
    return fallback_root, fallback_root / ".env"


PROJECT_ROOT, ENV_FILE_PATH = _discover_project_root(CONFIG_FILE)


class Settings(BaseSettings):
    """
    Centralised and validated application settings.
    """
    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH, env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # --- CORE APP SETTINGS ---
    ENVIRONMENT: str = "development"
    DATABASE_URL: Optional[str] = Field(None, validate_default=True)
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_MAX_SIZE: int = 5

    # --- API / LOGGING ---
    COACHPLAN_API_KEY: str | None = None
    COACHPLAN_LOG_LEVEL: str = "INFO"
    COACHPLAN_LOG_TO_CONSOLE: bool = True
    COACHPLAN_LOG_DIR: Path = Path("/var/log/coachplan")

    # --- DATABASE CONNECTION (from environment) ---
    POSTGRES_USER: str
    POSTGRES_PASSWORD: SecretStr
    POSTGRES_HOST: str
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str

    # --- PLAN SHAPE ---
    DAYS_PER_WEEK: int = Field(3, ge=1, le=7)
    WEEK_START_WEEKDAY: int = Field(1, ge=1, le=7)  # ISO weekday, 1 = Monday

    # --- RECONCILIATION ---
    RECONCILE_TIMEOUT_SECONDS: float = 15.0
    SOFT_DELETE_VETOED: bool = False

    @model_validator(mode="after")
    def build_database_url(self) -> "Settings":
        """Construct ``DATABASE_URL`` from the ``POSTGRES_*`` values when not given."""
        if self.DATABASE_URL:
            return self
        db_host = os.getenv("DB_HOST_OVERRIDE", self.POSTGRES_HOST)
        self.DATABASE_URL = make_conninfo(
            user=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD.get_secret_value(),
            host=db_host,
            port=self.POSTGRES_PORT,
            dbname=self.POSTGRES_DB,
        )
        return self

    # --- DYNAMIC FILE PATHS ---
    @property
    def log_path(self) -> Path:
        """
        Path for the main application log file.

        Falls back to a directory under the user's home when the configured
        log directory is not writable.
        """
        log_dir = Path(self.COACHPLAN_LOG_DIR)
        if log_dir.exists() and os.access(log_dir, os.W_OK):
            return log_dir / "coachplan_history.log"
        fallback_dir = Path.home() / "coachplan_logs"
        fallback_dir.mkdir(parents=True, exist_ok=True)
        return fallback_dir / "coachplan_history.log"


# Create a single, importable instance of the settings for the entire application.
settings = Settings()


def get_database_url() -> str:
    """Connection string for the plan store; a live ``DATABASE_URL`` beats settings."""
    url = os.environ.get("DATABASE_URL") or settings.DATABASE_URL
    if not url:
        raise RuntimeError(
            "No database configured: set DATABASE_URL or the POSTGRES_* variables."
        )
    return url
