"""
Payload sealed inside issued access tokens.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AccessTokenClaims(BaseModel):
    """Grant details recovered when an access token is opened."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    user_id: Optional[str] = None
    scope: Optional[str] = None
    acr: Optional[str] = None
    issued_at: datetime = Field(..., description="Instant the token was minted.")

    def scopes(self) -> set[str]:
        return set(self.scope.split()) if self.scope else set()


__all__ = ["AccessTokenClaims"]
