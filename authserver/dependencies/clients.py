"""
Factory functions to provide shared stores and services as FastAPI dependencies.
"""

from functools import lru_cache

from fastapi import Depends

from authserver.clients import (
    CodeStoreGateway,
    DynamoDBCodeStore,
    InMemoryCodeStore,
    InMemoryProfileStore,
    SQLiteCodeStore,
)
from authserver.core.clock import Clock, SystemClock
from authserver.core.config import PKCESettings, get_settings
from authserver.services import (
    AuthorizationCodeValidator,
    FernetAccessTokenFactory,
    ProfileClaimsResolver,
    TokenCipherService,
)

from .config import get_pkce_settings


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_code_store() -> CodeStoreGateway:
    """Provide the authorization code store selected by configuration."""
    settings = _settings().code_store
    if settings.backend == "sqlite":
        return SQLiteCodeStore(settings.sqlite_path)
    if settings.backend == "dynamodb":
        return DynamoDBCodeStore(settings)
    return InMemoryCodeStore()


@lru_cache()
def get_clock() -> Clock:
    """Provide the clock used for expiry decisions."""
    return SystemClock()


def get_authorization_code_validator(
    store: CodeStoreGateway = Depends(get_code_store),
    clock: Clock = Depends(get_clock),
    pkce: PKCESettings = Depends(get_pkce_settings),
) -> AuthorizationCodeValidator:
    """Build a fresh single-use validator for each exchange request."""
    return AuthorizationCodeValidator(
        store,
        clock=clock,
        require_pkce=pkce.enforce,
        allow_plain_pkce=pkce.allow_plain,
    )


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric sealing helper for access tokens."""
    return TokenCipherService(secret=_settings().tokens.signing_secret)


@lru_cache()
def get_access_token_factory() -> FernetAccessTokenFactory:
    """Provide the access token factory."""
    tokens = _settings().tokens
    return FernetAccessTokenFactory(
        get_token_cipher_service(),
        ttl_seconds=tokens.access_token_ttl_seconds,
        token_type=tokens.token_type,
    )


@lru_cache()
def get_profile_store() -> InMemoryProfileStore:
    """Provide the process-local user profile directory."""
    return InMemoryProfileStore()


@lru_cache()
def get_user_claims_provider() -> ProfileClaimsResolver:
    """Provide the OpenID claims lookup."""
    return ProfileClaimsResolver(get_profile_store().get_profile)


__all__ = [
    "get_access_token_factory",
    "get_authorization_code_validator",
    "get_clock",
    "get_code_store",
    "get_profile_store",
    "get_token_cipher_service",
    "get_user_claims_provider",
]
