"""Public schema exports."""

from .errors import ExchangeError, ExchangeErrorCode
from .exchange import AuthorizationCodeExchangeRequest
from .token import AccessToken

__all__ = [
    "AccessToken",
    "AuthorizationCodeExchangeRequest",
    "ExchangeError",
    "ExchangeErrorCode",
]
