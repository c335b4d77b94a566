"""
Authorization code storage contract and the process-local implementation.

Every store must make ``invalidate`` a compare-and-invalidate: of several
concurrent calls for the same live code, exactly one observes ``True``.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, Optional, Protocol, runtime_checkable

from authserver.models.authorization_code import AuthorizationCodeRecord


@runtime_checkable
class CodeStoreGateway(Protocol):
    """Narrow interface the validator needs from code persistence."""

    def fetch(self, code: str) -> Optional[AuthorizationCodeRecord]:
        """Return the live record for ``code`` or ``None`` when unknown or consumed."""
        ...

    def invalidate(self, code: str) -> bool:
        """Mark ``code`` consumed.

        Returns ``True`` only for the call that moved the code from live to
        consumed. Invalidating an unknown or already consumed code is a no-op
        that returns ``False``.
        """
        ...


@runtime_checkable
class SupportsExpiryPurge(Protocol):
    def purge_expired(self, now: datetime) -> int:
        ...


def _require_code(record: AuthorizationCodeRecord) -> str:
    if not record.code:
        raise ValueError("Authorization code records must carry their code to be saved.")
    return record.code


class InMemoryCodeStore:
    """Lock-protected dictionary store, suitable for a single worker process.

    Consumed codes are removed outright. Expired codes that are never
    exchanged stay until ``purge_expired`` runs or the process exits.
    """

    def __init__(self) -> None:
        self._records: Dict[str, AuthorizationCodeRecord] = {}
        self._lock = threading.Lock()

    def save(self, record: AuthorizationCodeRecord) -> None:
        code = _require_code(record)
        with self._lock:
            self._records[code] = record

    def fetch(self, code: str) -> Optional[AuthorizationCodeRecord]:
        with self._lock:
            return self._records.get(code)

    def invalidate(self, code: str) -> bool:
        with self._lock:
            return self._records.pop(code, None) is not None

    def purge_expired(self, now: datetime) -> int:
        """Drop records whose expiry has passed; returns how many were removed."""
        with self._lock:
            expired = [
                code
                for code, record in self._records.items()
                if record.expires is not None and record.expires <= now
            ]
            for code in expired:
                del self._records[code]
        return len(expired)


__all__ = ["CodeStoreGateway", "InMemoryCodeStore", "SupportsExpiryPurge"]
