"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_access_token_factory,
    get_authorization_code_validator,
    get_clock,
    get_code_store,
    get_profile_store,
    get_token_cipher_service,
    get_user_claims_provider,
)
from .config import SettingsDependency, get_app_settings, get_pkce_settings

__all__ = [
    "SettingsDependency",
    "get_access_token_factory",
    "get_app_settings",
    "get_authorization_code_validator",
    "get_clock",
    "get_code_store",
    "get_pkce_settings",
    "get_profile_store",
    "get_token_cipher_service",
    "get_user_claims_provider",
]
