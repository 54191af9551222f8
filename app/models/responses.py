"""Error envelope builders.

Every failure returned by Gatekeeper has the same shape:

.. code-block:: json

    {
      "error": {
        "statusCode": 400,
        "message": "Invalid email format",
        "error": {}
      }
    }

``error.error`` is ``{}`` for validation failures and the underlying error
message for internal ones. The HTTP status always equals ``error.statusCode``.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from app.models.errors import ServiceError


def error_body(status_code: int, message: str, error: Any = None) -> dict[str, Any]:
    """Build the error envelope dict."""
    return {
        "error": {
            "statusCode": status_code,
            "message": message,
            "error": {} if error is None else error,
        }
    }


def build_error_response(exc: ServiceError) -> JSONResponse:
    """Render a ServiceError as a JSONResponse with its status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.detail),
    )
