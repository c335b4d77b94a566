"""
Application configuration models and helpers.

Centralizes settings management so the token endpoint, the code stores and the
maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CODE_STORE_BACKENDS = ("memory", "sqlite", "dynamodb")


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class CodeStoreSettings(BaseSettings):
    """Selects and configures the authorization code storage backend."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    backend: str = Field("memory", validation_alias="CODE_STORE_BACKEND")
    sqlite_path: str = Field(
        "data/authorization_codes.db",
        validation_alias="CODE_STORE_SQLITE_PATH",
        description="Database file used when the sqlite backend is selected.",
    )
    dynamodb_table_name: Optional[str] = Field(
        None,
        validation_alias="CODE_STORE_DYNAMODB_TABLE",
        description="Table holding authorization codes for the dynamodb backend.",
    )
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        normalized = str(value).strip().lower()
        if normalized not in CODE_STORE_BACKENDS:
            raise ValueError(
                f"Unsupported code store backend {value!r}; "
                f"expected one of {', '.join(CODE_STORE_BACKENDS)}."
            )
        return normalized

    @model_validator(mode="after")
    def _require_table_for_dynamodb(self) -> "CodeStoreSettings":
        if self.backend == "dynamodb" and not self.dynamodb_table_name:
            raise ValueError(
                "CODE_STORE_DYNAMODB_TABLE is required for the dynamodb backend."
            )
        return self


class TokenSettings(BaseSettings):
    """Access token issuance configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    signing_secret: str = Field(
        ...,
        validation_alias="TOKEN_SIGNING_SECRET",
        description="Secret used to derive the key that seals issued access tokens.",
    )
    access_token_ttl_seconds: int = Field(3600, validation_alias="ACCESS_TOKEN_TTL")
    token_type: str = Field("Bearer", validation_alias="TOKEN_TYPE")

    @field_validator("access_token_ttl_seconds")
    @classmethod
    def _positive_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("ACCESS_TOKEN_TTL must be a positive number of seconds.")
        return value


class PKCESettings(BaseSettings):
    """Proof Key for Code Exchange policy."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    enforce: bool = Field(
        False,
        validation_alias="PKCE_ENFORCE",
        description="Reject authorization codes that were issued without a challenge.",
    )
    allow_plain: bool = Field(
        True,
        validation_alias="PKCE_ALLOW_PLAIN",
        description="Accept the 'plain' code challenge method.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    code_store: CodeStoreSettings = Field(default_factory=CodeStoreSettings)
    tokens: TokenSettings = Field(default_factory=TokenSettings)
    pkce: PKCESettings = Field(default_factory=PKCESettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "CODE_STORE_BACKENDS",
    "CodeStoreSettings",
    "PKCESettings",
    "TokenSettings",
    "get_settings",
]
