"""Gatekeeper endpoint.

Provides:
  POST /gatekeeper — body {"access_token": "...", "client_id": "..."}

Responses:
  200 {profile, isAdobeEmployee}
  400 error envelope — access_token or client_id missing
  401 error envelope — token rejected by IMS
  500 error envelope — IMS unreachable or answered unexpectedly
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.config import Config
from app.constants import MSG_MISSING_PARAMS
from app.identity.gatekeeper import check_identity
from app.identity.provider import IdentityProvider
from app.models.errors import ServiceError, ValidationError
from app.models.responses import build_error_response
from app.utils.params import read_params

router = APIRouter(tags=["gatekeeper"])


@router.post("/gatekeeper", response_model=None)
async def gatekeeper(request: Request) -> dict[str, Any] | JSONResponse:
    """Validate an IMS access token and report whether its owner is an employee."""
    provider: IdentityProvider = request.app.state.identity_provider
    config: Config = request.app.state.config

    try:
        params = await read_params(request)
        if params is None:
            raise ValidationError(MSG_MISSING_PARAMS)

        result = await check_identity(
            provider,
            access_token=params.get("access_token"),
            client_id=params.get("client_id"),
            employee_domain=config.identity.employee_domain,
            employee_account_type=config.identity.employee_account_type,
        )
    except ServiceError as exc:
        return build_error_response(exc)

    return result.to_body()
