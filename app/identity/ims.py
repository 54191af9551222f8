"""Async Adobe IMS client.

Implements the IdentityProvider protocol over the IMS REST API:
  - POST /ims/validate_token/v1  form: type=access_token, client_id, token
                                 → {"valid": bool, "reason": "...", ...}
  - POST /ims/profile/v1         bearer token, form: client_id
                                 → profile JSON

A single shared httpx.AsyncClient is created at lifespan startup
(create_http_client) and stored in app.state.http_client; ImsClient never
creates its own. Access tokens are never logged.
"""

from __future__ import annotations

from typing import Any

import httpx

from app.constants import (
    DEFAULT_IDENTITY_TIMEOUT_S,
    DEFAULT_IMS_URL,
    IMS_PROFILE_PATH,
    IMS_VALIDATE_TOKEN_PATH,
)
from app.identity.provider import IdentityProviderError, TokenValidation
from app.utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)

# ─── Connection pool ──────────────────────────────────────────────────────────

POOL_MAX_CONNECTIONS: int = 20
POOL_MAX_KEEPALIVE: int = 10
POOL_KEEPALIVE_EXPIRY: float = 30.0  # seconds


def create_http_client(timeout_s: float = DEFAULT_IDENTITY_TIMEOUT_S) -> httpx.AsyncClient:
    """Create the shared httpx.AsyncClient used for identity-provider calls.

    Created once at lifespan startup; NEVER instantiated per-request.
    """
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=POOL_MAX_CONNECTIONS,
            max_keepalive_connections=POOL_MAX_KEEPALIVE,
            keepalive_expiry=POOL_KEEPALIVE_EXPIRY,
        ),
        timeout=httpx.Timeout(timeout_s),
        follow_redirects=False,
    )


class ImsClient:
    """IdentityProvider backed by Adobe IMS.

    Usage:
        ims = ImsClient(http_client, base_url="https://ims-na1.adobelogin.com")
        validation = await ims.validate_token(token, client_id)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = DEFAULT_IMS_URL,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def validate_token(self, access_token: str, client_id: str) -> TokenValidation:
        data = await self._post(
            IMS_VALIDATE_TOKEN_PATH,
            form={"type": "access_token", "client_id": client_id, "token": access_token},
        )
        valid = data.get("valid") is True
        if not valid:
            logger.info("IMS rejected access token", client_id=client_id, reason=data.get("reason"))
        return TokenValidation(valid=valid, reason=data.get("reason"))

    async def get_profile(self, access_token: str, client_id: str) -> dict[str, Any]:
        return await self._post(
            IMS_PROFILE_PATH,
            form={"client_id": client_id},
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def _post(
        self,
        path: str,
        form: dict[str, str],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            with PerformanceLogger("IMS request", logger, path=path):
                response = await self._http.post(url, data=form, headers=headers)
        except httpx.HTTPError as exc:
            raise IdentityProviderError(
                f"IMS request to {path} failed: {type(exc).__name__}: {exc}"
            ) from exc

        if response.is_error:
            raise IdentityProviderError(f"IMS {path} returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise IdentityProviderError(f"IMS {path} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise IdentityProviderError(f"IMS {path} returned {type(data).__name__}, expected object")
        return data
