"""Root test configuration for Gatekeeper.

Keeps the test suite independent of any developer config / credentials:
GATEKEEPER_* and SUPABASE_* env vars are cleared for every test, and the
in-memory rate limiter is reset so repeated POSTs never hit a 429.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from app.allowlist.store import AllowlistStore
from app.storage.memory_backend import InMemoryFileStore

EMAILS_KEY = "data/emails.json"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GATEKEEPER_CONFIG",
        "GATEKEEPER_PORT",
        "GATEKEEPER_EMAILS_KEY",
        "SUPABASE_URL",
        "SUPABASE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Reset the in-memory rate limiter storage between tests."""
    from app.limiter import limiter
    try:
        limiter._storage.reset()
    except Exception:
        pass  # not every limiter storage supports reset()


@pytest.fixture()
def mock_files() -> AsyncMock:
    """FileStore double whose read/write are AsyncMocks (configure per test)."""
    files = AsyncMock()
    files.read = AsyncMock()
    files.write = AsyncMock(return_value=None)
    return files


@pytest.fixture()
def memory_store() -> InMemoryFileStore:
    return InMemoryFileStore()


@pytest.fixture()
def allowlist(memory_store: InMemoryFileStore) -> AllowlistStore:
    return AllowlistStore(memory_store, key=EMAILS_KEY)
