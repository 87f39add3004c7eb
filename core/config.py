"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Yellow happen here. No module should call
os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY).

  AuthConfig: the frozen value handed to the auth core. Settings is the loader;
      AuthConfig is what TokenService and CredentialHasher actually hold. It is
      built once at startup and shared read-only by every request.

Security notes:
  A SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies
  on key entropy -- a short key weakens every issued token.

  A missing SECRET_KEY outside debug mode is NOT a startup failure here. The
  token service reports it as an internal failure the first time a token is
  issued or verified, and logs it at error level.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("yellow.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'yellow.db'}"


@dataclass(frozen=True)
class AuthConfig:
    """Process-wide auth configuration. Immutable once constructed."""

    secret_key: str
    token_expire_seconds: int = 86400
    bcrypt_rounds: int = 12


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
    # Empty string is the sentinel for "not configured".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL
    cors_origins: list[str] = ["http://localhost:5173"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # 24 hours
    token_expire_seconds: int = Field(default=86400, ge=0)
    # bcrypt accepts cost factors 4..31
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode: leave the key empty and warn. Token operations fail
            with an internal error until SECRET_KEY is set.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                logger.warning("SECRET_KEY is not set. Token issuance and verification will fail.")
                return self
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    def auth_config(self) -> AuthConfig:
        """Freeze the auth-relevant settings into the value the auth core holds."""
        return AuthConfig(
            secret_key=self.secret_key,
            token_expire_seconds=self.token_expire_seconds,
            bcrypt_rounds=self.bcrypt_rounds,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
