"""
Proof Key for Code Exchange (RFC 7636) checks performed at the token endpoint.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import re
import secrets
from typing import Iterable, Optional

from authserver.models.authorization_code import AuthorizationCodeRecord, CodeChallengeMethod
from authserver.schemas.errors import ExchangeError, ExchangeErrorCode

# RFC 7636 section 4.1: unreserved characters, 43 to 128 of them.
_VERIFIER_PATTERN = re.compile(r"[A-Za-z0-9\-._~]{43,128}")

ALL_METHODS = frozenset(method.value for method in CodeChallengeMethod)


def is_valid_code_verifier(code_verifier: str) -> bool:
    return _VERIFIER_PATTERN.fullmatch(code_verifier) is not None


def s256_challenge(code_verifier: str) -> str:
    """BASE64URL(SHA256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def derive_challenge(code_verifier: str, method: Optional[str]) -> Optional[str]:
    """Transform a verifier with ``method``; ``None`` for unknown methods."""
    if method == CodeChallengeMethod.S256.value:
        return s256_challenge(code_verifier)
    if method == CodeChallengeMethod.PLAIN.value:
        return code_verifier
    return None


def generate_code_verifier(num_bytes: int = 48) -> str:
    """Create a random verifier; 48 bytes of entropy encode to 64 characters."""
    verifier = secrets.token_urlsafe(num_bytes)
    if not is_valid_code_verifier(verifier):
        raise ValueError("num_bytes must yield a verifier of 43 to 128 characters.")
    return verifier


def check_code_verifier(
    record: AuthorizationCodeRecord,
    code_verifier: Optional[str],
    *,
    allowed_methods: Iterable[str] = ALL_METHODS,
) -> Optional[ExchangeError]:
    """Match a submitted verifier against the challenge stored with the code.

    Returns ``None`` when the proof holds, otherwise the error to report.
    Records without a challenge are not subject to this check.
    """
    if not record.code_challenge:
        return None

    if not code_verifier:
        return ExchangeError.of(
            ExchangeErrorCode.CODE_VERIFIER_MISSING,
            "The PKCE code verifier parameter is required.",
        )

    if not is_valid_code_verifier(code_verifier):
        return ExchangeError.of(
            ExchangeErrorCode.CODE_VERIFIER_INVALID,
            "The PKCE code verifier parameter is invalid.",
        )

    method = record.code_challenge_method
    candidate = derive_challenge(code_verifier, method) if method in allowed_methods else None
    if candidate is None:
        return ExchangeError.of(
            ExchangeErrorCode.CODE_CHALLENGE_METHOD_INVALID,
            "Unknown PKCE code challenge method.",
        )

    if not hmac.compare_digest(
        candidate.encode("utf-8"), record.code_challenge.encode("utf-8")
    ):
        return ExchangeError.of(
            ExchangeErrorCode.CODE_VERIFIER_MISMATCH,
            "The PKCE code verifier parameter does not match the code challenge.",
        )

    return None


__all__ = [
    "ALL_METHODS",
    "check_code_verifier",
    "derive_challenge",
    "generate_code_verifier",
    "is_valid_code_verifier",
    "s256_challenge",
]
