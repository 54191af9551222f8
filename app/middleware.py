"""HTTP middleware for Gatekeeper.

RequestContextMiddleware:
    Assigns every request a ULID request id, binds it into the structlog
    context for the duration of the request and returns it in the
    ``X-Request-ID`` response header. A caller-supplied ``X-Request-ID`` is
    reused when it is itself a valid ULID.

BodySizeLimitMiddleware:
    Rejects request bodies above MAX_REQUEST_BODY_BYTES with HTTP 413 before
    any handler runs. Two-phase check:
      1. Content-Length fast path: reject on the declared size alone.
      2. Chunked slow path: accumulate the body with a rolling cap.

Both error bodies use the standard error envelope.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.constants import MAX_REQUEST_BODY_BYTES
from app.models.responses import error_body
from app.utils.logger import clear_request_id, get_logger, set_request_id
from app.utils.ulid import generate_ulid, is_valid_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_PAYLOAD_TOO_LARGE_BODY: dict = error_body(
    413, f"Request body too large. Maximum size: {MAX_REQUEST_BODY_BYTES // 1024}KB"
)

_INVALID_CONTENT_LENGTH_BODY: dict = error_body(400, "Invalid Content-Length header")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to every log line emitted while serving a request."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        incoming = request.headers.get(REQUEST_ID_HEADER)
        request_id = incoming if incoming and is_valid_request_id(incoming) else generate_ulid()

        set_request_id(request_id)
        try:
            logger.debug("Request received", method=request.method, path=request.url.path)
            response = await call_next(request)
        finally:
            clear_request_id()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Starlette middleware enforcing the request body hard cap.

    - Content-Length > MAX_REQUEST_BODY_BYTES  → HTTP 413 (fast path, no body read)
    - Content-Length not an integer            → HTTP 400
    - No Content-Length, accumulated body > cap → HTTP 413 (rolling cap)
    - Otherwise the body is cached on the request and the handler runs
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        content_length_header = request.headers.get("content-length")

        # ── Phase 1: Content-Length fast path ─────────────────────────────────
        if content_length_header is not None:
            try:
                declared_size = int(content_length_header)
            except ValueError:
                logger.warning(
                    "Invalid Content-Length header",
                    value=content_length_header,
                    path=request.url.path,
                )
                return JSONResponse(
                    status_code=400,
                    content=_INVALID_CONTENT_LENGTH_BODY,
                )

            if declared_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (Content-Length)",
                    declared_size=declared_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(
                    status_code=413,
                    content=_PAYLOAD_TOO_LARGE_BODY,
                )

            return await call_next(request)

        # ── Phase 2: Chunked or no Content-Length, rolling cap ────────────────
        body_chunks: list[bytes] = []
        total_size: int = 0

        async for chunk in request.stream():
            total_size += len(chunk)
            if total_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (chunked)",
                    accumulated_size=total_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(
                    status_code=413,
                    content=_PAYLOAD_TOO_LARGE_BODY,
                )
            body_chunks.append(chunk)

        # Starlette's Request.body() returns request._body when set, so the
        # handler can read the already-consumed stream.
        request._body = b"".join(body_chunks)  # type: ignore[attr-defined]

        return await call_next(request)
