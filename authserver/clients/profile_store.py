"""Process-local directory of user profiles used for OpenID claims."""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional


class InMemoryProfileStore:
    """Maps user identifiers to flat profile dictionaries."""

    def __init__(self, profiles: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        self._profiles: Dict[str, Dict[str, Any]] = {
            user_id: dict(profile) for user_id, profile in (profiles or {}).items()
        }
        self._lock = threading.Lock()

    def put_profile(self, user_id: str, profile: Mapping[str, Any]) -> None:
        with self._lock:
            self._profiles[user_id] = dict(profile)

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return dict(profile) if profile is not None else None


__all__ = ["InMemoryProfileStore"]
