"""Successful token endpoint responses."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AccessToken(BaseModel):
    """Access token response (RFC 6749 section 5.1)."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Lifetime of the access token in seconds.")
    scope: Optional[str] = None


__all__ = ["AccessToken"]
