"""Schemas for the authorization code exchange at the token endpoint."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AuthorizationCodeExchangeRequest(BaseModel):
    """Parameters a client submits to trade an authorization code for a token."""

    code: Optional[str] = Field(
        None, description="Authorization code returned to the client's redirect URI."
    )
    redirect_uri: Optional[str] = Field(
        None,
        description="Required when the authorization request included a redirect URI.",
    )
    code_verifier: Optional[str] = Field(
        None,
        description="PKCE verifier; required when the code was issued with a challenge.",
    )


__all__ = ["AuthorizationCodeExchangeRequest"]
