"""Gatekeeper file store package.

Re-exports the public API for ergonomic imports:

    from app.storage import FileStore, FileNotExistsError, StorageError
"""

from app.storage.protocol import (
    FileNotExistsError,
    FileStore,
    StorageError,
)

__all__ = [
    "FileStore",
    "FileNotExistsError",
    "StorageError",
]
