"""Allowlist endpoint.

Provides:
  POST /allowlist — body {"email": "..."}; adds the normalized email to the
                    allowlist document

Responses:
  200 {message, email, totalEmails, allEmails}
  400 error envelope — missing or malformed email
  500 error envelope — storage failure or unparsable document
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.allowlist.store import AllowlistStore
from app.constants import MSG_INTERNAL_ERROR
from app.limiter import ALLOWLIST_RATE_LIMIT, limiter
from app.models.errors import InternalError, ServiceError, ValidationError
from app.models.responses import build_error_response
from app.utils.logger import get_logger
from app.utils.params import missing_params_message, read_params

logger = get_logger(__name__)

router = APIRouter(tags=["allowlist"])


@router.post("/allowlist", response_model=None)
@limiter.limit(ALLOWLIST_RATE_LIMIT)
async def add_to_allowlist(request: Request) -> dict[str, Any] | JSONResponse:
    """Add an email to the allowlist (idempotent, case-insensitive)."""
    store: AllowlistStore = request.app.state.allowlist_store

    try:
        params = await read_params(request)
        message = missing_params_message(params, ["email"])
        if message:
            raise ValidationError(message)

        result = await store.add_email(params["email"])  # type: ignore[index]

    except ServiceError as exc:
        if exc.status_code >= 500:
            logger.error("Error processing request", error=str(exc.detail))
        return build_error_response(exc)
    except Exception as exc:
        logger.error(
            "Error processing request",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return build_error_response(InternalError.from_exception(MSG_INTERNAL_ERROR, exc))

    return result.to_body()
