"""Unit tests for the FileStore backends.

LocalFileStore runs against tmp_path; SupabaseFileStore runs against a
MagicMock client whose bucket download/upload/list are AsyncMocks.
"""

from __future__ import annotations

import asyncio
import os
import stat
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.storage.local_backend import LocalFileStore
from app.storage.memory_backend import InMemoryFileStore
from app.storage.protocol import FileNotExistsError, FileStore, StorageError
from app.storage.supabase_backend import SupabaseFileStore

KEY = "data/emails.json"


# ─── Protocol conformance ─────────────────────────────────────────────────────


class TestProtocol:
    def test_all_backends_satisfy_protocol(self, tmp_path: Path) -> None:
        assert isinstance(InMemoryFileStore(), FileStore)
        assert isinstance(LocalFileStore(str(tmp_path)), FileStore)
        assert isinstance(SupabaseFileStore("https://x.supabase.co", "k", "b"), FileStore)

    def test_not_found_is_a_storage_error(self) -> None:
        exc = FileNotExistsError(KEY)
        assert isinstance(exc, StorageError)
        assert exc.key == KEY
        assert str(exc) == "File does not exist: data/emails.json"


# ─── InMemoryFileStore ────────────────────────────────────────────────────────


class TestInMemoryFileStore:
    async def test_missing_key_raises(self) -> None:
        store = InMemoryFileStore()
        with pytest.raises(FileNotExistsError):
            await store.read(KEY)
        assert store.reads == [KEY]

    async def test_write_then_read(self) -> None:
        store = InMemoryFileStore()
        await store.write(KEY, b"[]")
        assert await store.read(KEY) == b"[]"
        assert store.writes == [(KEY, b"[]")]

    async def test_seeded_files(self) -> None:
        store = InMemoryFileStore({KEY: b'["a@b.co"]'})
        assert await store.read(KEY) == b'["a@b.co"]'

    async def test_health_check(self) -> None:
        assert await InMemoryFileStore().health_check() is True


# ─── LocalFileStore ───────────────────────────────────────────────────────────


class TestLocalFileStore:
    async def test_initialize_creates_root(self, tmp_path: Path) -> None:
        root = tmp_path / "files"
        store = LocalFileStore(str(root))
        await store.initialize()

        assert root.is_dir()
        assert stat.S_IMODE(root.stat().st_mode) & 0o077 == 0
        assert await store.health_check() is True

    async def test_health_check_false_without_root(self, tmp_path: Path) -> None:
        store = LocalFileStore(str(tmp_path / "never-created"))
        assert await store.health_check() is False

    async def test_missing_file_raises_not_exists(self, tmp_path: Path) -> None:
        store = LocalFileStore(str(tmp_path))
        with pytest.raises(FileNotExistsError) as exc_info:
            await store.read(KEY)
        assert exc_info.value.key == KEY

    async def test_write_creates_parent_dirs(self, tmp_path: Path) -> None:
        store = LocalFileStore(str(tmp_path))
        await store.write(KEY, b'[\n  "a@b.co"\n]')

        assert (tmp_path / "data" / "emails.json").read_bytes() == b'[\n  "a@b.co"\n]'
        assert await store.read(KEY) == b'[\n  "a@b.co"\n]'

    async def test_write_replaces_content(self, tmp_path: Path) -> None:
        store = LocalFileStore(str(tmp_path))
        await store.write(KEY, b"[]")
        await store.write(KEY, b'["x@y.zz"]')

        assert await store.read(KEY) == b'["x@y.zz"]'
        # no temp files left behind
        assert os.listdir(tmp_path / "data") == ["emails.json"]

    @pytest.mark.parametrize("key", ["", "/etc/passwd", "../outside.json", "data/../../x.json"])
    async def test_rejects_keys_outside_root(self, tmp_path: Path, key: str) -> None:
        store = LocalFileStore(str(tmp_path / "root"))
        with pytest.raises(StorageError):
            await store.read(key)
        with pytest.raises(StorageError):
            await store.write(key, b"[]")

    async def test_read_directory_is_storage_error(self, tmp_path: Path) -> None:
        (tmp_path / "data").mkdir()
        store = LocalFileStore(str(tmp_path))
        with pytest.raises(StorageError) as exc_info:
            await store.read("data")
        assert not isinstance(exc_info.value, FileNotExistsError)

    def test_root_expands_user(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        store = LocalFileStore("~/files")
        assert store.root == (tmp_path / "files").resolve()


# ─── SupabaseFileStore ────────────────────────────────────────────────────────


def _supabase(bucket: MagicMock, timeout_s: float = 1.0) -> SupabaseFileStore:
    client = MagicMock()
    client.storage.from_.return_value = bucket
    return SupabaseFileStore(
        url="https://project.supabase.co",
        key="service-role",
        bucket="gatekeeper",
        timeout_s=timeout_s,
        client=client,
    )


def _bucket() -> MagicMock:
    bucket = MagicMock()
    bucket.download = AsyncMock(return_value=b"[]")
    bucket.upload = AsyncMock(return_value=None)
    bucket.list = AsyncMock(return_value=[])
    return bucket


class TestSupabaseFileStore:
    async def test_read(self) -> None:
        bucket = _bucket()
        store = _supabase(bucket)

        assert await store.read(KEY) == b"[]"
        bucket.download.assert_awaited_once_with(KEY)

    async def test_write_upserts_json(self) -> None:
        bucket = _bucket()
        store = _supabase(bucket)

        await store.write(KEY, b"[]")

        bucket.upload.assert_awaited_once_with(
            KEY,
            b"[]",
            file_options={"content-type": "application/json", "upsert": "true"},
        )

    @pytest.mark.parametrize(
        "error",
        [
            Exception({"statusCode": "404", "error": "not_found", "message": "Object not found"}),
            Exception({"statusCode": 400, "error": "not_found", "message": "Object not found"}),
            Exception("Object not found"),
        ],
    )
    async def test_missing_object_raises_not_exists(self, error: Exception) -> None:
        bucket = _bucket()
        bucket.download.side_effect = error
        store = _supabase(bucket)

        with pytest.raises(FileNotExistsError):
            await store.read(KEY)

    async def test_other_read_error_is_storage_error(self) -> None:
        bucket = _bucket()
        bucket.download.side_effect = Exception(
            {"statusCode": "403", "error": "Unauthorized", "message": "new row violates policy"}
        )
        store = _supabase(bucket)

        with pytest.raises(StorageError) as exc_info:
            await store.read(KEY)
        assert not isinstance(exc_info.value, FileNotExistsError)
        assert str(exc_info.value) == "new row violates policy"

    async def test_write_error_is_storage_error(self) -> None:
        bucket = _bucket()
        bucket.upload.side_effect = RuntimeError("connection reset")
        store = _supabase(bucket)

        with pytest.raises(StorageError, match="connection reset"):
            await store.write(KEY, b"[]")

    async def test_read_timeout(self) -> None:
        async def slow(_key: str) -> bytes:
            await asyncio.sleep(1)
            return b"[]"

        bucket = _bucket()
        bucket.download = slow
        store = _supabase(bucket, timeout_s=0.01)

        with pytest.raises(StorageError, match="Timed out"):
            await store.read(KEY)

    async def test_uninitialized_store_raises(self) -> None:
        store = SupabaseFileStore("https://x.supabase.co", "k", "b")
        with pytest.raises(StorageError, match="not initialized"):
            await store.read(KEY)
        assert await store.health_check() is False

    async def test_health_check(self) -> None:
        bucket = _bucket()
        assert await _supabase(bucket).health_check() is True

        bucket.list.side_effect = RuntimeError("down")
        assert await _supabase(bucket).health_check() is False

    async def test_close_drops_client(self) -> None:
        store = _supabase(_bucket())
        await store.close()
        assert await store.health_check() is False
