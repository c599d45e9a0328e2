"""
MEDS Backend — Application Configuration
==========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before the app starts.

Defaults target a single clinic laptop: SQLite in ./meds_data and the built
frontend served from the same process. A PostgreSQL deployment only needs
DATABASE_URL and SECRET_KEY overridden.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_SECRET_KEY = "change-me-meds-secret"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///path or postgresql+asyncpg://user:pw@host/db
    database_url: str = Field(
        default="sqlite+aiosqlite:///./meds_data/meds.db",
        description="Async SQLAlchemy connection URL",
    )
    # Pool sizing is ignored for SQLite URLs
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Start-up connection retries (tenacity)
    db_connect_attempts: int = Field(default=5, ge=1, le=20)
    db_connect_min_wait: int = Field(default=1, ge=1, le=30)
    db_connect_max_wait: int = Field(default=10, ge=1, le=120)

    # ── Storage ───────────────────────────────────────────────────────────
    data_dir: str = Field(default="./meds_data")
    backup_dir: str = Field(default="./meds_backups")

    # Built frontend location; None means probe the usual build directories
    frontend_dir: Optional[str] = Field(default=None)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:5173")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8090, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Authentication ────────────────────────────────────────────────────
    secret_key: str = Field(default=DEFAULT_SECRET_KEY)
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60 * 12, ge=5, le=60 * 24 * 30)

    # ── Login Rate Limiting ───────────────────────────────────────────────
    # Per-IP sliding window applied to the password login endpoint only
    login_rate_limit_requests: int = Field(default=20, ge=1, le=10000)
    login_rate_limit_window: int = Field(default=300, ge=10, le=86400)  # seconds

    # ── Records API ───────────────────────────────────────────────────────
    default_page_size: int = Field(default=30, ge=1, le=500)
    max_page_size: int = Field(default=500, ge=1, le=5000)

    # ── Encounters ────────────────────────────────────────────────────────
    # An encounter lock older than this is treated as abandoned
    active_editor_timeout_minutes: int = Field(default=10, ge=1, le=24 * 60)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "MEDS_",
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def sqlite_path(self) -> Optional[Path]:
        """Filesystem path of the SQLite database, or None for other backends."""
        if not self.is_sqlite:
            return None
        _, _, path = self.database_url.partition(":///")
        if not path or path == ":memory:":
            return None
        return Path(path)

    def validate_required_for_production(self) -> None:
        """
        Checks settings that must not keep their development defaults.

        Raises:
            ValueError: listing every offending setting.
        """
        errors = []
        if self.secret_key == DEFAULT_SECRET_KEY:
            errors.append(
                "MEDS_SECRET_KEY is still the development default. "
                "Tokens signed with it can be forged by anyone reading the source."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
