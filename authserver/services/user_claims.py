"""
OpenID Connect user claims, grouped by the scope that unlocks them.

See https://openid.net/specs/openid-connect-core-1_0.html#ScopeClaims
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

# Scope values understood by the claims lookup.
VALID_CLAIMS = "basic profile email address phone privileges"

PROFILE_CLAIM_VALUES = (
    "name family_name given_name middle_name nickname preferred_username "
    "profile picture website gender birthdate zoneinfo locale updated_at"
)
EMAIL_CLAIM_VALUES = "email email_verified"
ADDRESS_CLAIM_VALUES = "address street_address locality region postal_code country"
PHONE_CLAIM_VALUES = "phone_number phone_number_verified"
PRIVILEGES_CLAIM_VALUES = "scope profil"

OPENID_CLAIM_VALUES = " ".join(
    (
        PROFILE_CLAIM_VALUES,
        EMAIL_CLAIM_VALUES,
        ADDRESS_CLAIM_VALUES,
        PHONE_CLAIM_VALUES,
        PRIVILEGES_CLAIM_VALUES,
    )
)

CLAIM_GROUPS: Dict[str, tuple[str, ...]] = {
    "profile": tuple(PROFILE_CLAIM_VALUES.split()),
    "email": tuple(EMAIL_CLAIM_VALUES.split()),
    "address": tuple(ADDRESS_CLAIM_VALUES.split()),
    "phone": tuple(PHONE_CLAIM_VALUES.split()),
    "privileges": tuple(PRIVILEGES_CLAIM_VALUES.split()),
}


class UserClaimsProvider(Protocol):
    def get_user_claims(self, user_id: str, scope: Optional[str]) -> Dict[str, Any]:
        ...


class ProfileClaimsResolver:
    """Select the claims a scope grants access to from a user's profile.

    No group is required and no claim is required: groups absent from the
    scope and claims absent from the profile are simply omitted. ``sub`` is
    always present.
    """

    def __init__(
        self, profile_source: Callable[[str], Optional[Mapping[str, Any]]]
    ) -> None:
        self._profile_source = profile_source

    def get_user_claims(self, user_id: str, scope: Optional[str]) -> Dict[str, Any]:
        requested = set(scope.split()) if scope else set()
        profile = self._profile_source(user_id) or {}
        if not profile:
            logger.info("No profile found for user %s; returning subject only", user_id)

        claims: Dict[str, Any] = {"sub": user_id}
        for group in VALID_CLAIMS.split():
            if group not in requested:
                continue
            for claim_name in CLAIM_GROUPS.get(group, ()):
                if claim_name in profile:
                    claims[claim_name] = profile[claim_name]
        return claims


__all__ = [
    "ADDRESS_CLAIM_VALUES",
    "CLAIM_GROUPS",
    "EMAIL_CLAIM_VALUES",
    "OPENID_CLAIM_VALUES",
    "PHONE_CLAIM_VALUES",
    "PRIVILEGES_CLAIM_VALUES",
    "PROFILE_CLAIM_VALUES",
    "ProfileClaimsResolver",
    "UserClaimsProvider",
    "VALID_CLAIMS",
]
