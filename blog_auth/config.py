"""Auth configuration management."""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32

_DURATION_RE = re.compile(r"^(\d+)\s*([smhd]?)$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse a TTL such as ``"15m"``, ``"7d"``, ``"3600"`` or a number of seconds.

    Raises ValueError for anything that is not a strictly positive duration.
    """
    if isinstance(value, timedelta):
        duration = value
    elif isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    elif isinstance(value, (int, float)):
        duration = timedelta(seconds=value)
    elif isinstance(value, str):
        match = _DURATION_RE.match(value.strip().lower())
        if not match:
            raise ValueError(f"Invalid duration: {value!r} (expected e.g. '15m', '7d')")
        amount, unit = match.groups()
        duration = timedelta(**{_DURATION_UNITS[unit]: int(amount)})
    else:
        raise ValueError(f"Invalid duration: {value!r}")

    if duration <= timedelta(0):
        raise ValueError("Duration must be positive")
    return duration


class AuthSettings(BaseSettings):
    """Validated, immutable configuration for the auth core.

    Built once at process start and passed explicitly to the hasher, the
    token issuer and the stores.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    JWT_SECRET: str = Field(description="Signing key for access tokens")
    JWT_EXPIRES_IN: timedelta = Field(default=timedelta(minutes=15), description="Access token TTL")
    JWT_REFRESH_SECRET: str = Field(description="Signing key for refresh tokens")
    JWT_REFRESH_EXPIRES_IN: timedelta = Field(default=timedelta(days=7), description="Refresh token TTL")
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = Field(default="HS256", description="JWT algorithm")

    BCRYPT_SALT_ROUNDS: int = Field(default=10, ge=4, le=31, description="bcrypt cost factor")

    DATABASE_URL: str = Field(default="sqlite:///./blog_auth.db", description="SQLAlchemy database URL")
    # "sql" (production) or "memory" (testing)
    AUTH_STORE: Literal["sql", "memory"] = Field(default="sql", description="Backing store for users and sessions")

    @field_validator("JWT_EXPIRES_IN", "JWT_REFRESH_EXPIRES_IN", mode="before")
    @classmethod
    def validate_ttl(cls, v):
        return parse_duration(v)

    @field_validator("JWT_SECRET", "JWT_REFRESH_SECRET")
    @classmethod
    def validate_secret_length(cls, v: str, info) -> str:
        if len(v) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"{info.field_name} must be at least {MIN_SECRET_LENGTH} characters for security"
            )
        return v

    @model_validator(mode="after")
    def validate_key_separation(self):
        if self.JWT_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_REFRESH_SECRET must differ from JWT_SECRET")
        if self.JWT_REFRESH_EXPIRES_IN <= self.JWT_EXPIRES_IN:
            logger.warning("Refresh token TTL is not longer than access token TTL")
        return self


@lru_cache
def get_settings() -> AuthSettings:
    """Load settings from the environment once per process."""
    return AuthSettings()
