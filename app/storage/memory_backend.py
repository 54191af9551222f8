"""InMemoryFileStore — dict-backed FileStore.

Selected with ``storage.backend: memory``. Content is lost on restart, so it
is only useful for local development and tests. Every read and write is
recorded in ``reads`` / ``writes`` so tests can assert the exact I/O sequence.
"""

from __future__ import annotations

from typing import Optional

from app.storage.protocol import FileNotExistsError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryFileStore:
    """Non-durable FileStore."""

    def __init__(self, files: Optional[dict[str, bytes]] = None) -> None:
        self._files: dict[str, bytes] = dict(files or {})
        self.reads: list[str] = []
        self.writes: list[tuple[str, bytes]] = []

    async def read(self, key: str) -> bytes:
        self.reads.append(key)
        try:
            return self._files[key]
        except KeyError:
            raise FileNotExistsError(key) from None

    async def write(self, key: str, data: bytes) -> None:
        self.writes.append((key, data))
        self._files[key] = bytes(data)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        logger.debug("in_memory_file_store_closed", files=len(self._files))
