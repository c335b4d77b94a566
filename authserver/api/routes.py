"""
FastAPI routes for the authorization server.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Form, Header, HTTPException
from fastapi.responses import JSONResponse

from authserver.dependencies import (
    get_access_token_factory,
    get_authorization_code_validator,
    get_user_claims_provider,
)
from authserver.schemas import (
    AuthorizationCodeExchangeRequest,
    ExchangeError,
    ExchangeErrorCode,
)
from authserver.services import (
    AuthorizationCodeReplayError,
    AuthorizationCodeValidator,
    InvalidAccessTokenError,
)

router = APIRouter()
logger = logging.getLogger(__name__)

# RFC 6749 5.1: token responses must not be cached.
_NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _error_response(error: ExchangeError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_body(),
        headers=_NO_STORE_HEADERS,
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post("/token", status_code=HTTPStatus.OK)
def exchange_authorization_code(
    validator: Annotated[
        AuthorizationCodeValidator, Depends(get_authorization_code_validator)
    ],
    token_factory: Annotated[Any, Depends(get_access_token_factory)],
    grant_type: Annotated[Optional[str], Form()] = None,
    code: Annotated[Optional[str], Form()] = None,
    redirect_uri: Annotated[Optional[str], Form()] = None,
    code_verifier: Annotated[Optional[str], Form()] = None,
    client_id: Annotated[Optional[str], Form()] = None,
) -> JSONResponse:
    """
    Exchange an authorization code for an access token.

    Client authentication happens upstream; a ``client_id`` sent in the body
    must still match the client the code was issued to.
    """
    if not grant_type:
        return _error_response(
            ExchangeError.of(
                ExchangeErrorCode.INVALID_REQUEST,
                "The grant type was not specified in the request",
            )
        )
    if grant_type != validator.grant_type:
        return _error_response(
            ExchangeError.of(
                ExchangeErrorCode.UNSUPPORTED_GRANT_TYPE,
                f'Grant type "{grant_type}" not supported',
            )
        )

    outcome = validator.validate(
        AuthorizationCodeExchangeRequest(
            code=code,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
        )
    )
    if not outcome.ok:
        return _error_response(outcome.error)

    grant = outcome.grant
    if client_id and client_id != grant.client_id:
        logger.info("Authorization code presented by a different client")
        return _error_response(
            ExchangeError.of(
                ExchangeErrorCode.INVALID_GRANT,
                "Authorization code doesn't exist or is invalid for the client",
            )
        )

    try:
        token = validator.issue(
            token_factory, grant.client_id, grant.user_id, grant.scope, grant.acr
        )
    except AuthorizationCodeReplayError:
        return _error_response(
            ExchangeError.of(
                ExchangeErrorCode.INVALID_GRANT,
                "Authorization code doesn't exist or is invalid for the client",
            )
        )

    return JSONResponse(
        content=token.model_dump(exclude_none=True),
        headers=_NO_STORE_HEADERS,
    )


@router.get("/userinfo", status_code=HTTPStatus.OK)
def userinfo(
    token_factory: Annotated[Any, Depends(get_access_token_factory)],
    claims_provider: Annotated[Any, Depends(get_user_claims_provider)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> dict:
    """Return OpenID claims for the user an access token was issued to."""
    scheme, _, access_token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not access_token.strip():
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail="Bearer access token required.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = token_factory.open(access_token.strip())
    except InvalidAccessTokenError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail="Access token is invalid or expired.",
            headers={"WWW-Authenticate": 'Bearer error="invalid_token"'},
        ) from exc

    if "openid" not in claims.scopes():
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="The access token does not grant the openid scope.",
            headers={"WWW-Authenticate": 'Bearer error="insufficient_scope"'},
        )
    if not claims.user_id:
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="The access token is not bound to a user.",
        )

    return claims_provider.get_user_claims(claims.user_id, claims.scope)
