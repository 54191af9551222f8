"""Health endpoint for Gatekeeper.

Implements:
  GET /health — 503 before lifespan startup completes, 200 afterwards

The body reports the file store backend and whether it answers its health
check. A failing file store degrades the status but still returns 200: the
gatekeeper and hello endpoints keep working without storage.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from app.config import Config
from app.storage.factory import select_backend
from app.storage.protocol import FileStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Primary health check endpoint.

    Response body (200):
        {
          "status": "ok" | "degraded",
          "storage": "healthy" | "error",
          "storage_backend": "local" | "memory" | "supabase",
          "emails_key": "data/emails.json"
        }

    Response body (503):
        {"status": "starting", "message": "Gatekeeper is starting up..."}
    """
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "message": "Gatekeeper is starting up...",
            },
        )

    config: Config = request.app.state.config
    file_store: FileStore = request.app.state.file_store

    storage_ok = await file_store.health_check()

    return {
        "status": "ok" if storage_ok else "degraded",
        "storage": "healthy" if storage_ok else "error",
        "storage_backend": select_backend(config),
        "emails_key": config.storage.emails_key,
    }
