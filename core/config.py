"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for GymDesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Settings is read once per process. get_settings() is wrapped in lru_cache, so
every caller (route modules, the limiter, the CLI) shares a single instance;
tests that change environment variables call get_settings.cache_clear().
Environment variable names are the upper-cased field names, and a .env file
in the working directory is read as a fallback.

Security notes:
  SECRET_KEY has no fallback. A missing key is a hard startup failure in every
  mode, and keys shorter than 32 chars are rejected. Tokens signed with a
  guessable default would let anyone mint an admin token.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or gym/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gymdesk.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'gymdesk.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except secret_key has a default. Environment variable names
    are the uppercased field names (secret_key -> SECRET_KEY).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # Empty string is the sentinel for "not configured"; the validator below
    # refuses to start with it.
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Tokens are valid for one day.
    token_expire_seconds: int = 86400
    login_rate_limit: str = "10/minute"
    # slowapi / limits storage backend, e.g. "redis://localhost:6379".
    rate_limit_storage_uri: str = "memory://"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Refuse to start without an explicit, sufficiently long SECRET_KEY."""
        if not self.secret_key:
            raise ValueError(
                "SECRET_KEY is required. Set SECRET_KEY in your environment or .env file (at least 32 characters)."
            )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    settings = Settings()
    if "*" in settings.allowed_hosts:
        logger.warning("ALLOWED_HOSTS accepts any Host header; restrict it in production")
    logger.debug(
        "Settings loaded (token_expire_seconds=%d, login_rate_limit=%s)",
        settings.token_expire_seconds,
        settings.login_rate_limit,
    )
    return settings
