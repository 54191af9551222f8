"""LocalFileStore — files under a root directory on the local disk.

Keys map to paths below ``root``; keys that would resolve outside the root
("../x", absolute paths) are rejected with StorageError.

Writes go to a temporary sibling file which is then os.replace()d over the
target, so readers never observe a half-written document.

Blocking file I/O runs in a worker thread (asyncio.to_thread) — the event
loop is never blocked on disk.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

from app.storage.protocol import FileNotExistsError, StorageError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class LocalFileStore:
    """FileStore backed by a directory.

    Usage:
        store = LocalFileStore(root="~/.gatekeeper/files")
        await store.initialize()
        data = await store.read("data/emails.json")
    """

    def __init__(self, root: str) -> None:
        self._root = Path(os.path.expanduser(root)).resolve()

    @property
    def root(self) -> Path:
        return self._root

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Create the root directory (mode 0700) if it does not exist."""
        await asyncio.to_thread(self._root.mkdir, mode=0o700, parents=True, exist_ok=True)
        logger.info("local_file_store_initialized", root=str(self._root))

    async def close(self) -> None:
        """No-op — nothing is held open between calls."""
        logger.debug("local_file_store_closed")

    async def health_check(self) -> bool:
        return self._root.is_dir() and os.access(self._root, os.W_OK)

    # ── FileStore Protocol Methods ────────────────────────────────────────────

    async def read(self, key: str) -> bytes:
        path = self._resolve(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise FileNotExistsError(key) from exc
        except OSError as exc:
            raise StorageError(f"Could not read {key}: {exc.strerror or exc}") from exc

    async def write(self, key: str, data: bytes) -> None:
        path = self._resolve(key)
        try:
            await asyncio.to_thread(_atomic_write, path, data)
        except OSError as exc:
            raise StorageError(f"Could not write {key}: {exc.strerror or exc}") from exc

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _resolve(self, key: str) -> Path:
        if not key or key.startswith("/"):
            raise StorageError(f"Invalid file key: {key!r}")
        path = (self._root / key).resolve()
        if path != self._root and self._root not in path.parents:
            raise StorageError(f"File key escapes storage root: {key!r}")
        return path


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
