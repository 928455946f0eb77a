"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the portfolio site happen here. No module
should call os.getenv() or os.environ.get() directly. Entry points (asgi.py,
main.py) call get_settings() once and pass the resulting Settings object into
create_app() / the stores; everything downstream receives it explicitly.

Security notes:
  JWT_SECRET shorter than 32 chars is rejected outright. HS256 signing relies
  on key entropy -- a short key weakens every session token.

  In production mode (DEBUG not set or false), a missing JWT_SECRET is a hard
  startup failure. There is no fallback value: a guessable default secret
  would let anyone mint admin sessions.

  secure_cookies defaults to "not debug": cookies carry the Secure flag in
  production and are usable over plain http on a dev machine.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or portfolio/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("portfolio.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'portfolio.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at construction time.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `jwt_secret` reads from JWT_SECRET, `debug` reads from DEBUG.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # None means "follow DEBUG" -- resolved in the validator.
    secure_cookies: Optional[bool] = None
    token_expire_seconds: int = 24 * 60 * 60
    # Read only by the bootstrap CLI (main.py create-admin).
    admin_password: str = ""

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # ------------------------------------------------------------------
    # Contact relay (SMTP)
    # ------------------------------------------------------------------

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    mailer_from: str = ""
    mailer_password: str = ""
    mailer_to: str = "contact@example.com"
    max_attachment_bytes: int = 5 * 1024 * 1024

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret(self) -> "Settings":
        """Enforce the JWT_SECRET policy and resolve the secure-cookie default.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            JWT_SECRET is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Admin sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        if self.secure_cookies is None:
            self.secure_cookies = not self.debug
        return self

    @property
    def mailer_configured(self) -> bool:
        return bool(self.mailer_from and self.mailer_password)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance for entry points.

    asgi.py and main.py are the only callers. Library code receives Settings
    as an argument instead of calling this, so tests can build an app from an
    explicit Settings(...) without touching the environment.

    In tests: call get_settings.cache_clear() if you need to re-read env vars.
    """
    return Settings()
