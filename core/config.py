"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the storefront happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. products_url -> PRODUCTS_URL). Type coercion and validation are
      built in.

The two collection URLs default to the hosted mock API the storefront was
built against. Overriding them is mostly useful for pointing at a local mock.

Layer rule: core/ is the kernel. This module may not import from api/, web/
or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("condestyle.config")

MOCK_API_BASE = "https://69374c69f8dc350aff33e5a4.mockapi.io/api/v1"
PRODUCTS_URL = f"{MOCK_API_BASE}/products"
USERS_URL = f"{MOCK_API_BASE}/users"

_DEFAULT_STORAGE_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'condestyle_storage.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
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

    # ------------------------------------------------------------------
    # Remote collections
    # ------------------------------------------------------------------

    products_url: str = PRODUCTS_URL
    users_url: str = USERS_URL
    request_timeout: float = 10.0

    # ------------------------------------------------------------------
    # Session storage
    # ------------------------------------------------------------------

    # Empty string means "use the SQLite file next to auth/".
    storage_db_url: str = ""
    session_key: str = "user"
    client_cookie_name: str = "client_id"
    client_cookie_max_age: int = 60 * 60 * 24 * 365
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("products_url", "users_url")
    @classmethod
    def validate_collection_url(cls, value: str) -> str:
        """Collection URLs must be absolute http(s) URLs. Trailing slashes are dropped."""
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Collection URL must start with http:// or https://, got {value!r}")
        return value.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("REQUEST_TIMEOUT must be greater than zero.")
        return value

    @model_validator(mode="after")
    def resolve_storage_url(self) -> "Settings":
        """Fill in the default storage DB location when none is configured."""
        if not self.storage_db_url:
            self.storage_db_url = _DEFAULT_STORAGE_DB_URL
            if self.debug:
                logger.info("Using default local storage at %s", self.storage_db_url)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
