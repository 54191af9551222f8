"""SupabaseFileStore — files in a Supabase Storage bucket.

All round trips are wrapped in asyncio.wait_for(timeout_s). Unlike a fire-and-
forget sink, a file store's failures matter to the caller: every exception is
re-raised as StorageError, and a missing object as FileNotExistsError.

Environment (read by storage/factory.py, never by this module):
  SUPABASE_URL  — project URL
  SUPABASE_KEY  — service role key (needs read/write on the bucket)
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from supabase import create_async_client

from app.constants import DEFAULT_STORAGE_TIMEOUT_S
from app.storage.protocol import FileNotExistsError, StorageError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SupabaseFileStore:
    """FileStore backed by a Supabase Storage bucket.

    Usage:
        store = SupabaseFileStore(url="https://...", key="service-role-key", bucket="gatekeeper")
        await store.initialize()
        await store.write("data/emails.json", b"[]")
        await store.close()

    ``client`` may be passed in directly (tests); otherwise initialize()
    creates an async client from ``url`` / ``key``.
    """

    def __init__(
        self,
        url: str,
        key: str,
        bucket: str,
        timeout_s: float = DEFAULT_STORAGE_TIMEOUT_S,
        client: Optional[Any] = None,
    ) -> None:
        self._url = url
        self._key = key
        self._bucket = bucket
        self._timeout_s = timeout_s
        self._client: Optional[Any] = client

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Create the async Supabase client.

        Raises:
            StorageError: if the client cannot be created within timeout_s.
        """
        if self._client is not None:
            return
        try:
            self._client = await asyncio.wait_for(
                create_async_client(self._url, self._key),
                timeout=self._timeout_s,
            )
        except Exception as exc:
            logger.error(
                "supabase_file_store_init_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise StorageError(f"Could not connect to Supabase: {exc}") from exc
        logger.info(
            "supabase_file_store_initialized",
            bucket=self._bucket,
            timeout_s=self._timeout_s,
        )

    async def close(self) -> None:
        """Drop the client (HTTP connections are not held between calls)."""
        self._client = None
        logger.debug("supabase_file_store_closed")

    async def health_check(self) -> bool:
        """Returns True if the bucket can be listed within timeout_s. Never raises."""
        if self._client is None:
            return False
        try:
            await asyncio.wait_for(
                self._client.storage.from_(self._bucket).list(),
                timeout=self._timeout_s,
            )
            return True
        except Exception as exc:
            logger.warning(
                "supabase_health_check_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False

    # ── FileStore Protocol Methods ────────────────────────────────────────────

    async def read(self, key: str) -> bytes:
        bucket = self._bucket_proxy()
        try:
            data = await asyncio.wait_for(bucket.download(key), timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            raise StorageError(f"Timed out reading {key}") from exc
        except Exception as exc:
            if _is_not_found(exc):
                raise FileNotExistsError(key) from exc
            raise StorageError(_error_message(exc)) from exc
        return bytes(data)

    async def write(self, key: str, data: bytes) -> None:
        bucket = self._bucket_proxy()
        try:
            await asyncio.wait_for(
                bucket.upload(
                    key,
                    data,
                    file_options={"content-type": "application/json", "upsert": "true"},
                ),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise StorageError(f"Timed out writing {key}") from exc
        except Exception as exc:
            raise StorageError(_error_message(exc)) from exc

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _bucket_proxy(self) -> Any:
        if self._client is None:
            raise StorageError("Supabase file store is not initialized")
        return self._client.storage.from_(self._bucket)


def _error_payload(exc: BaseException) -> dict:
    """Return the JSON error body storage3 attaches to its exceptions, if any."""
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0]
    return {}


def _is_not_found(exc: BaseException) -> bool:
    """True if a storage3 error reports a missing object.

    Depending on the Storage API version a missing object comes back as
    HTTP 404, or as HTTP 400 with ``error: "not_found"``.
    """
    payload = _error_payload(exc)
    status = payload.get("statusCode", getattr(exc, "status", None))
    if str(status) == "404":
        return True
    code = str(payload.get("error", getattr(exc, "code", "")) or "").lower()
    if code in ("not_found", "nosuchkey"):
        return True
    message = str(payload.get("message", "") or exc).lower()
    return "not found" in message


def _error_message(exc: BaseException) -> str:
    payload = _error_payload(exc)
    return str(payload.get("message") or exc) or type(exc).__name__
