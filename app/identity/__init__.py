"""Gatekeeper identity package — IMS token validation and employee check.

Public API:
  - ImsClient             — async IMS client (IdentityProvider implementation)
  - create_http_client()  — shared httpx.AsyncClient factory
  - check_identity()      — validate token, fetch profile, decide employee status
  - IdentityProvider      — protocol consumed by check_identity()
  - IdentityProviderError — provider unreachable / malformed answer
"""

from __future__ import annotations

from app.identity.gatekeeper import IdentityCheckResult, check_identity, is_employee_profile
from app.identity.ims import ImsClient, create_http_client
from app.identity.provider import IdentityProvider, IdentityProviderError, TokenValidation

__all__ = [
    "IdentityCheckResult",
    "IdentityProvider",
    "IdentityProviderError",
    "ImsClient",
    "TokenValidation",
    "check_identity",
    "create_http_client",
    "is_employee_profile",
]
