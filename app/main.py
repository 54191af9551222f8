"""Gatekeeper FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan — @asynccontextmanager startup/shutdown sequence
  - /        route  — service discovery root
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()           → app.state.config
  2. create_file_store()     → app.state.file_store
  3. AllowlistStore(...)     → app.state.allowlist_store
  4. create_http_client()    → app.state.http_client
  5. ImsClient(...)          → app.state.identity_provider
  6. app.state.ready = True

Shutdown sequence (reverse):
  app.state.ready = False → close HTTP client → close file store
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.allowlist.router import router as allowlist_router
from app.allowlist.store import AllowlistStore
from app.config import Config, load_config
from app.constants import MSG_INTERNAL_ERROR
from app.health import router as health_router
from app.hello import router as hello_router
from app.identity.ims import ImsClient, create_http_client
from app.identity.router import router as identity_router
from app.limiter import limiter
from app.middleware import BodySizeLimitMiddleware, RequestContextMiddleware
from app.models.errors import ServiceError
from app.models.responses import build_error_response, error_body
from app.storage.factory import create_file_store
from app.storage.protocol import FileStore
from app.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
# Configure logging at module import time (before any other imports that may log).
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)


root_router = APIRouter(tags=["root"])


@root_router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint — service identity / discovery."""
    return {
        "service": "Gatekeeper",
        "allowlist": "/allowlist",
        "gatekeeper": "/gatekeeper",
        "hello": "/hello",
        "health": "/health",
    }


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup and shutdown sequence.

    Any startup failure (bad config → SystemExit, unreachable storage →
    StorageError) propagates, so the process exits before ready=True is set.
    """
    logger.info("Gatekeeper starting up...")

    # ── Step 1: Load configuration ────────────────────────────────────────────
    config: Config = load_config()
    app.state.config = config

    # ── Step 2: File store ────────────────────────────────────────────────────
    file_store: FileStore = await create_file_store(config)
    app.state.file_store = file_store

    # ── Step 3: Allowlist store ───────────────────────────────────────────────
    app.state.allowlist_store = AllowlistStore(
        file_store,
        key=config.storage.emails_key,
        logger=get_logger("app.allowlist"),
    )
    logger.info("Allowlist store ready", emails_key=config.storage.emails_key)

    # ── Step 4: Shared HTTP client for identity-provider calls ───────────────
    http_client: httpx.AsyncClient = create_http_client(timeout_s=config.identity.timeout_s)
    app.state.http_client = http_client

    # ── Step 5: Identity provider ─────────────────────────────────────────────
    app.state.identity_provider = ImsClient(http_client, base_url=config.identity.ims_url)
    logger.info("IMS client created", ims_url=config.identity.ims_url)

    # ── Step 6: Mark as ready ─────────────────────────────────────────────────
    app.state.ready = True
    logger.info("Gatekeeper ready")

    yield

    # ── Shutdown (reverse order) ──────────────────────────────────────────────
    logger.info("Gatekeeper shutting down...")
    app.state.ready = False

    try:
        await http_client.aclose()
        logger.info("HTTP client closed")
    except Exception as exc:
        logger.warning("HTTP client close error (non-fatal)", error=str(exc))

    await file_store.close()

    logger.info("Gatekeeper shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the Gatekeeper FastAPI application.

    Call this function directly in unit tests to get an isolated app instance:
        app = create_app()

    The module-level `app` is created at import time for uvicorn:
        uvicorn app.main:app --host 127.0.0.1 --port 8080
    """
    # Swagger UI / ReDoc only in DEBUG.
    _debug = os.getenv("DEBUG", "false").lower() == "true"

    application = FastAPI(
        title="Gatekeeper",
        description="Email allowlist and IMS employee gate",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if _debug else None,
        redoc_url="/redoc" if _debug else None,
        openapi_url="/openapi.json" if _debug else None,
    )

    # /health returns 503 on any request that arrives before startup completes.
    application.state.ready = False

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # NOTE: In Starlette, the LAST-added middleware is OUTERMOST (runs first).
    application.add_middleware(BodySizeLimitMiddleware)
    application.add_middleware(SlowAPIMiddleware)
    application.add_middleware(RequestContextMiddleware)

    application.include_router(root_router)
    application.include_router(health_router)
    application.include_router(hello_router)
    application.include_router(allowlist_router)
    application.include_router(identity_router)

    # Global exception handlers
    @application.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        logger.warning(
            "Service error",
            status_code=exc.status_code,
            message=exc.message,
            path=str(request.url.path),
        )
        return build_error_response(exc)

    @application.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_http_exception_body(exc),
        )

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=500,
            content=error_body(500, MSG_INTERNAL_ERROR, str(exc) or {}),
        )

    return application


def _http_exception_body(exc: HTTPException) -> dict[str, Any]:
    if isinstance(exc.detail, dict):
        message = str(exc.detail.get("message", ""))
        return error_body(exc.status_code, message, exc.detail)
    return error_body(exc.status_code, str(exc.detail))


# ─── Module-Level App (for uvicorn) ───────────────────────────────────────────

app = create_app()
