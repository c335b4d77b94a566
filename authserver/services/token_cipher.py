"""Symmetric sealing of access token payloads."""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken


class TokenCipherService:
    """Seal and open JSON payloads using a Fernet key derived from a secret.

    Fernet tokens embed their creation time, which lets ``open`` enforce a
    maximum age without any server-side state.
    """

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token signing secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(key)

    def seal(self, payload: Dict[str, Any]) -> str:
        """Encrypt and authenticate a JSON-serializable payload."""
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        return self._fernet.encrypt(serialized.encode("utf-8")).decode("utf-8")

    def open(self, token: str, *, max_age_seconds: Optional[int] = None) -> Dict[str, Any]:
        """Decrypt a sealed payload, rejecting tampered or outdated tokens."""
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"), ttl=max_age_seconds)
        except InvalidToken as exc:
            raise ValueError("Token is invalid, tampered with or expired.") from exc
        return json.loads(plaintext)


__all__ = ["TokenCipherService"]
