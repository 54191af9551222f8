"""File store factory — backend selection and initialization.

Backend selection (config.storage.backend):
  - "local"    → LocalFileStore(config.storage.root)
  - "memory"   → InMemoryFileStore (non-durable; dev and tests only)
  - "supabase" → SupabaseFileStore; SUPABASE_URL + SUPABASE_KEY required
  - "auto"     → supabase if SUPABASE_URL and SUPABASE_KEY are both set,
                 otherwise local (default)

Initialization failures propagate to the FastAPI lifespan so the process
refuses to start rather than serving requests it cannot persist.
"""

from __future__ import annotations

import os

from app.config import Config
from app.storage.protocol import FileStore, StorageError
from app.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Environment variable names ───────────────────────────────────────────────

_ENV_SUPABASE_URL = "SUPABASE_URL"
_ENV_SUPABASE_KEY = "SUPABASE_KEY"


def select_backend(config: Config) -> str:
    """Resolve "auto" into a concrete backend name."""
    backend = config.storage.backend
    if backend != "auto":
        return backend
    if os.getenv(_ENV_SUPABASE_URL) and os.getenv(_ENV_SUPABASE_KEY):
        return "supabase"
    return "local"


async def create_file_store(config: Config) -> FileStore:
    """Create and initialize the configured file store.

    Raises:
        StorageError: supabase selected without credentials, or the backend
                      failed to initialize.
    """
    backend = select_backend(config)

    if backend == "memory":
        from app.storage.memory_backend import InMemoryFileStore

        logger.warning(
            "file_store_selected",
            backend="InMemoryFileStore",
            message="allowlist is NOT persisted across restarts",
        )
        return InMemoryFileStore()

    if backend == "supabase":
        return await _create_supabase_store(config)

    return await _create_local_store(config)


async def _create_supabase_store(config: Config) -> FileStore:
    from app.storage.supabase_backend import SupabaseFileStore

    url = os.getenv(_ENV_SUPABASE_URL)
    key = os.getenv(_ENV_SUPABASE_KEY)
    if not url or not key:
        raise StorageError(
            f"storage.backend is 'supabase' but {_ENV_SUPABASE_URL} / "
            f"{_ENV_SUPABASE_KEY} are not set"
        )

    store = SupabaseFileStore(
        url=url,
        key=key,
        bucket=config.storage.bucket,
        timeout_s=config.storage.timeout_s,
    )
    await store.initialize()
    logger.info(
        "file_store_selected",
        backend="SupabaseFileStore",
        bucket=config.storage.bucket,
        # Never log the key, only the project host
        supabase_host=url.split("//")[-1].split(".")[0] if "//" in url else "unknown",
    )
    return store


async def _create_local_store(config: Config) -> FileStore:
    from app.storage.local_backend import LocalFileStore

    store = LocalFileStore(root=config.storage.root)
    await store.initialize()
    logger.info(
        "file_store_selected",
        backend="LocalFileStore",
        root=str(store.root),
    )
    return store
