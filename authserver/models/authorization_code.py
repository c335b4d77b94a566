"""
Domain models for authorization code records and validated grants.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CodeChallengeMethod(str, Enum):
    """PKCE transformations understood by the server (RFC 7636 section 4.2)."""

    S256 = "S256"
    PLAIN = "plain"


class AuthorizationCodeRecord(BaseModel):
    """An authorization code as persisted at authorization time."""

    model_config = ConfigDict(frozen=True)

    code: Optional[str] = Field(
        None, description="Lookup key; some stores do not echo it back on fetch."
    )
    client_id: str
    user_id: Optional[str] = None
    redirect_uri: Optional[str] = Field(
        None, description="Redirect URI used in the authorization request, if any."
    )
    expires: Optional[datetime] = Field(
        None,
        description=(
            "Absolute expiry instant. Mandatory by storage contract; kept optional "
            "here so a violating store can be detected rather than rejected early."
        ),
    )
    scope: Optional[str] = None
    acr: Optional[str] = Field(
        None, description="Authentication context class reference asserted at login."
    )
    code_challenge: Optional[str] = None
    code_challenge_method: Optional[str] = Field(
        None,
        description="Kept as raw text so unknown methods surface as a client error.",
    )

    @field_validator("client_id", "user_id", mode="before")
    @classmethod
    def _identifier_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator(
        "code",
        "user_id",
        "redirect_uri",
        "scope",
        "acr",
        "code_challenge",
        "code_challenge_method",
        mode="before",
    )
    @classmethod
    def _blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value:
            return None
        return value

    @field_validator("expires", mode="before")
    @classmethod
    def _blank_expiry_as_missing(cls, value: Any) -> Any:
        if value in ("", 0):
            return None
        return value

    @field_validator("expires")
    @classmethod
    def _expiry_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class GrantContext(BaseModel):
    """Immutable summary of a successfully validated authorization code."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    user_id: Optional[str] = None
    scope: Optional[str] = None
    acr: Optional[str] = None
    code: str


__all__ = ["AuthorizationCodeRecord", "CodeChallengeMethod", "GrantContext"]
