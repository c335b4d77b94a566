"""
Error payloads returned by the token endpoint (RFC 6749 section 5.2).
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ExchangeErrorCode(str, Enum):
    """Machine-readable error codes surfaced to clients."""

    INVALID_REQUEST = "invalid_request"
    INVALID_GRANT = "invalid_grant"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    REDIRECT_URI_MISMATCH = "redirect_uri_mismatch"
    CODE_VERIFIER_MISSING = "code_verifier_missing"
    CODE_VERIFIER_INVALID = "code_verifier_invalid"
    CODE_CHALLENGE_METHOD_INVALID = "code_challenge_method_invalid"
    CODE_VERIFIER_MISMATCH = "code_verifier_mismatch"


class ExchangeError(BaseModel):
    """A recoverable, client-facing rejection of an exchange request."""

    model_config = ConfigDict(frozen=True)

    status_code: int = Field(HTTPStatus.BAD_REQUEST.value)
    error: ExchangeErrorCode
    error_description: str
    error_uri: Optional[str] = None

    @classmethod
    def of(
        cls,
        error: ExchangeErrorCode,
        description: str,
        *,
        error_uri: Optional[str] = None,
    ) -> "ExchangeError":
        return cls(error=error, error_description=description, error_uri=error_uri)

    def to_body(self) -> dict[str, str]:
        """Render the JSON body sent to the client."""
        body = {"error": self.error.value, "error_description": self.error_description}
        if self.error_uri:
            body["error_uri"] = self.error_uri
        return body


__all__ = ["ExchangeError", "ExchangeErrorCode"]
