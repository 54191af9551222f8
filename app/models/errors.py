"""Error taxonomy shared by every Gatekeeper handler.

Handlers raise a ServiceError subclass; the router (or the global exception
handler in app/main.py) turns it into the uniform error envelope built by
app/models/responses.py. The HTTP status of the response is always the
``status_code`` carried by the exception.

  ValidationError — bad or missing caller input        → 400
  AuthError       — credential rejected by the provider → 401
  InternalError   — storage, parse or provider failure  → 500
"""

from __future__ import annotations

from typing import Any, Optional


class ServiceError(Exception):
    """Base class for errors that map onto the error envelope.

    Attributes:
        message:     Human-readable message placed in ``error.message``.
        status_code: HTTP status of the response.
        detail:      Value placed in ``error.error`` — ``{}`` when there is
                     nothing to add, else the underlying error message.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        detail: Any = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = {} if detail is None else detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Missing or malformed request input."""

    status_code = 400


class AuthError(ServiceError):
    """Credential failed validation against the identity provider."""

    status_code = 401


class InternalError(ServiceError):
    """Storage, parse or unexpected collaborator failure."""

    status_code = 500

    @classmethod
    def from_exception(cls, message: str, exc: BaseException) -> "InternalError":
        """Wrap ``exc``, carrying its message (or ``{}`` if it has none)."""
        text = str(exc)
        return cls(message, detail=text if text else {})
