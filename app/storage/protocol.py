"""FileStore Protocol + storage error types.

A file store is a key-value blob store: keys are slash-separated paths
("data/emails.json"), values are raw bytes. Consumers only ever need two
operations — read a whole file, write a whole file.

Layout:
    protocol.py        — FileStore Protocol + StorageError / FileNotExistsError
    local_backend.py   — LocalFileStore (directory on disk, atomic replace)
    memory_backend.py  — InMemoryFileStore (dev / tests)
    supabase_backend.py — SupabaseFileStore (Supabase Storage bucket)
    factory.py         — create_file_store() — backend selection
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class StorageError(Exception):
    """Generic file store failure (backend outage, permission, timeout…)."""


class FileNotExistsError(StorageError):
    """Raised by FileStore.read() when the key does not exist.

    This is the only storage failure consumers are expected to recover from.
    """

    def __init__(self, key: str) -> None:
        super().__init__(f"File does not exist: {key}")
        self.key = key


@runtime_checkable
class FileStore(Protocol):
    """Pluggable file store interface.

    Implementations: LocalFileStore (default), InMemoryFileStore, SupabaseFileStore.
    Selection via create_file_store() (storage/factory.py).
    """

    async def read(self, key: str) -> bytes:
        """Return the full content stored at ``key``.

        Raises:
            FileNotExistsError: ``key`` is absent.
            StorageError:       any other backend failure.
        """
        ...

    async def write(self, key: str, data: bytes) -> None:
        """Replace the content stored at ``key`` with ``data``.

        Raises:
            StorageError: on backend failure.
        """
        ...

    async def health_check(self) -> bool:
        """Returns True if the backend is operational. Must not raise."""
        ...

    async def close(self) -> None:
        """Release connections and resources. Called during graceful shutdown."""
        ...
