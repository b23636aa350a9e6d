"""Application configuration with environment variable support.

All settings can be overridden via environment variables prefixed with ``FEATUREVOTE_``,
or via a ``.env`` file in the project root.

Examples::

    FEATUREVOTE_PORT=9000 featurevote start
    FEATUREVOTE_DATABASE_URL=postgresql+asyncpg://app@db/features featurevote start
    FEATUREVOTE_VOTE_RATE_LIMIT="20 per hour" featurevote start
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: two levels up from this file (backend/app/config.py -> project/)
_BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Feature voting configuration — all values overridable via env vars."""

    model_config = SettingsConfigDict(
        env_prefix="FEATUREVOTE_",
        env_file=str(_BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Storage
    data_dir: Path = _BASE_DIR / "data"
    database_url: str | None = None
    sql_echo: bool = False

    # Vote throttling (parsed by the `limits` package)
    rate_limit_enabled: bool = True
    vote_rate_limit: str = "10 per 15 minutes"

    # Logging
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "featurevote.db"

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.db_path}"


# Singleton instance — import this everywhere
settings = Settings()
