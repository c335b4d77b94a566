"""Service layer exports."""

from .access_tokens import FernetAccessTokenFactory, InvalidAccessTokenError
from .authorization_code import (
    AccessTokenFactory,
    AuthorizationCodeReplayError,
    AuthorizationCodeValidator,
    StorageContractError,
    ValidationOutcome,
    ValidatorStateError,
)
from .token_cipher import TokenCipherService
from .user_claims import ProfileClaimsResolver, UserClaimsProvider

__all__ = [
    "AccessTokenFactory",
    "AuthorizationCodeReplayError",
    "AuthorizationCodeValidator",
    "FernetAccessTokenFactory",
    "InvalidAccessTokenError",
    "ProfileClaimsResolver",
    "StorageContractError",
    "TokenCipherService",
    "UserClaimsProvider",
    "ValidationOutcome",
    "ValidatorStateError",
]
