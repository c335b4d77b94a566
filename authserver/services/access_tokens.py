"""
Access token issuance for validated authorization code grants.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from authserver.models.access_token import AccessTokenClaims
from authserver.schemas.token import AccessToken
from authserver.services.token_cipher import TokenCipherService


class InvalidAccessTokenError(Exception):
    """Raised when a presented access token cannot be opened."""


class FernetAccessTokenFactory:
    """Mint self-contained bearer tokens carrying the grant they came from."""

    def __init__(
        self,
        cipher: TokenCipherService,
        *,
        ttl_seconds: int = 3600,
        token_type: str = "Bearer",
    ) -> None:
        self._cipher = cipher
        self._ttl = ttl_seconds
        self._token_type = token_type

    def create(
        self,
        client_id: str,
        user_id: Optional[str],
        scope: Optional[str],
        acr: Optional[str],
    ) -> AccessToken:
        claims = AccessTokenClaims(
            client_id=client_id,
            user_id=user_id,
            scope=scope,
            acr=acr,
            issued_at=datetime.now(timezone.utc),
        )
        sealed = self._cipher.seal(claims.model_dump(mode="json"))
        return AccessToken(
            access_token=sealed,
            token_type=self._token_type,
            expires_in=self._ttl,
            scope=scope,
        )

    def open(self, access_token: str) -> AccessTokenClaims:
        try:
            payload = self._cipher.open(access_token, max_age_seconds=self._ttl)
            return AccessTokenClaims.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            raise InvalidAccessTokenError("Access token is invalid or expired.") from exc


__all__ = ["FernetAccessTokenFactory", "InvalidAccessTokenError"]
