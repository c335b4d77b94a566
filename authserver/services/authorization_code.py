"""
Authorization Code grant verification (RFC 6749 section 4.1.3).

The validator decides whether a presented code may be exchanged for an access
token, then consumes the code once the token has been minted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol
from urllib.parse import unquote_plus

from authserver.clients.code_store import CodeStoreGateway
from authserver.core.clock import Clock, SystemClock
from authserver.models.authorization_code import GrantContext
from authserver.schemas.errors import ExchangeError, ExchangeErrorCode
from authserver.schemas.exchange import AuthorizationCodeExchangeRequest
from authserver.services.pkce import ALL_METHODS, check_code_verifier

logger = logging.getLogger(__name__)


class StorageContractError(RuntimeError):
    """Raised when a code store returns data that breaks its contract."""


class AuthorizationCodeReplayError(Exception):
    """Raised when a concurrent exchange consumed the code first."""


class ValidatorStateError(RuntimeError):
    """Raised when a single-use validator is driven out of order."""


class AccessTokenFactory(Protocol):
    def create(
        self,
        client_id: str,
        user_id: Optional[str],
        scope: Optional[str],
        acr: Optional[str],
    ) -> Any:
        ...


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Either a validated grant or the error explaining the rejection."""

    grant: Optional[GrantContext] = None
    error: Optional[ExchangeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AuthorizationCodeValidator:
    """Verify one authorization code exchange and consume the code on issue."""

    grant_type = "authorization_code"

    def __init__(
        self,
        store: CodeStoreGateway,
        *,
        clock: Optional[Clock] = None,
        require_pkce: bool = False,
        allow_plain_pkce: bool = True,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._require_pkce = require_pkce
        self._allowed_methods = ALL_METHODS if allow_plain_pkce else frozenset({"S256"})
        self._grant: Optional[GrantContext] = None
        self._used = False

    @property
    def grant(self) -> Optional[GrantContext]:
        return self._grant

    def validate(self, request: AuthorizationCodeExchangeRequest) -> ValidationOutcome:
        """Run the ordered exchange checks; the first failure wins.

        Raises ``StorageContractError`` if the stored record has no expiry.
        """
        if self._used or self._grant is not None:
            raise ValidatorStateError("Validator instances handle a single exchange.")

        outcome = self._validate(request)
        if outcome.ok:
            self._grant = outcome.grant
            logger.info(
                "Authorization code accepted for client %s", outcome.grant.client_id
            )
        else:
            logger.info(
                "Authorization code exchange rejected: %s", outcome.error.error.value
            )
        return outcome

    def _validate(self, request: AuthorizationCodeExchangeRequest) -> ValidationOutcome:
        if not request.code:
            return _reject(
                ExchangeErrorCode.INVALID_REQUEST, "Missing parameter: code is required"
            )

        record = self._store.fetch(request.code)
        if record is None:
            return _reject(
                ExchangeErrorCode.INVALID_GRANT,
                "Authorization code doesn't exist or is invalid for the client",
            )

        # RFC 6749 4.1.3: the redirect URI must repeat the one used to authorize.
        if record.redirect_uri:
            if not request.redirect_uri or unquote_plus(request.redirect_uri) != unquote_plus(
                record.redirect_uri
            ):
                return _reject(
                    ExchangeErrorCode.REDIRECT_URI_MISMATCH,
                    "The redirect URI is missing or does not match",
                    error_uri="#section-4.1.3",
                )

        if record.expires is None:
            logger.error("Code store returned an authorization code without an expiry")
            raise StorageContractError(
                'Storage must return authorization codes with a value for "expires".'
            )

        if record.expires <= self._clock.now():
            return _reject(
                ExchangeErrorCode.INVALID_GRANT, "The authorization code has expired"
            )

        if self._require_pkce and not record.code_challenge:
            return _reject(
                ExchangeErrorCode.INVALID_REQUEST,
                "This application requires you provide a PKCE code challenge",
            )

        pkce_error = check_code_verifier(
            record, request.code_verifier, allowed_methods=self._allowed_methods
        )
        if pkce_error is not None:
            return ValidationOutcome(error=pkce_error)

        return ValidationOutcome(
            grant=GrantContext(
                client_id=record.client_id,
                user_id=record.user_id,
                scope=record.scope,
                acr=record.acr,
                code=record.code or request.code,
            )
        )

    def issue(
        self,
        token_factory: AccessTokenFactory,
        client_id: str,
        user_id: Optional[str],
        scope: Optional[str],
        acr: Optional[str],
    ) -> Any:
        """Mint a token for the validated grant and consume its code.

        The token is only returned if this call is the one that invalidated the
        code; losing that race raises ``AuthorizationCodeReplayError``.
        """
        if self._grant is None or self._used:
            raise ValidatorStateError("issue() requires exactly one successful validate().")

        grant = self._grant
        token = token_factory.create(client_id, user_id, scope, acr)
        self._used = True
        self._grant = None

        if not self._store.invalidate(grant.code):
            logger.warning(
                "Authorization code for client %s was consumed concurrently", grant.client_id
            )
            raise AuthorizationCodeReplayError(
                "Authorization code has already been exchanged."
            )

        logger.info("Access token issued for client %s", client_id)
        return token


def _reject(
    error: ExchangeErrorCode, description: str, *, error_uri: Optional[str] = None
) -> ValidationOutcome:
    return ValidationOutcome(error=ExchangeError.of(error, description, error_uri=error_uri))


__all__ = [
    "AccessTokenFactory",
    "AuthorizationCodeReplayError",
    "AuthorizationCodeValidator",
    "StorageContractError",
    "ValidationOutcome",
    "ValidatorStateError",
]
