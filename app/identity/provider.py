"""IdentityProvider Protocol.

The gatekeeper only needs two things from an identity provider: whether an
access token is valid for a client, and the profile of the token's owner.
ImsClient (identity/ims.py) is the production implementation; tests pass
AsyncMock-based fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable


class IdentityProviderError(Exception):
    """The identity provider could not be reached or answered unexpectedly."""


@dataclass(frozen=True)
class TokenValidation:
    """Result of validating an access token.

    reason: provider-supplied explanation when ``valid`` is False (may be None).
    """

    valid: bool
    reason: Optional[str] = None


@runtime_checkable
class IdentityProvider(Protocol):
    async def validate_token(self, access_token: str, client_id: str) -> TokenValidation:
        """Check ``access_token`` against the provider.

        Raises:
            IdentityProviderError: provider unreachable or malformed answer.
        """
        ...

    async def get_profile(self, access_token: str, client_id: str) -> dict[str, Any]:
        """Fetch the profile of the token owner.

        Raises:
            IdentityProviderError: provider unreachable, non-2xx, or malformed answer.
        """
        ...
