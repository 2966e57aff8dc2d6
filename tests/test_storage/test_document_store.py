"""Tests for JsonDocumentStore atomic rewrites and single-writer locking."""

import asyncio
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from dexledger.exceptions import ErrorKind, StorageError
from dexledger.storage.document_store import JsonDocumentStore


def _default() -> dict:
    return {"version": 1, "items": []}


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "store.json"


@pytest.fixture
def store(store_path: Path) -> JsonDocumentStore:
    return JsonDocumentStore(store_path, default_factory=_default)


@pytest.mark.asyncio
async def test_missing_file_reads_as_default(store: JsonDocumentStore) -> None:
    assert await store.read() == {"version": 1, "items": []}


@pytest.mark.asyncio
async def test_write_then_read_round_trips(store: JsonDocumentStore, store_path: Path) -> None:
    await store.write({"version": 1, "items": ["a", "b"]})

    assert store_path.exists()
    assert await store.read() == {"version": 1, "items": ["a", "b"]}
    assert not store_path.with_name("store.json.tmp").exists()


@pytest.mark.asyncio
async def test_corrupt_file_reads_as_default(store: JsonDocumentStore, store_path: Path) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{not json", encoding="utf-8")

    assert await store.read() == _default()


@pytest.mark.asyncio
async def test_non_object_document_reads_as_default(
    store: JsonDocumentStore, store_path: Path
) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text("[1, 2, 3]", encoding="utf-8")

    assert await store.read() == _default()


@pytest.mark.asyncio
async def test_failed_rename_keeps_previous_document(
    store: JsonDocumentStore, store_path: Path
) -> None:
    await store.write({"version": 1, "items": ["kept"]})

    with patch(
        "dexledger.storage.document_store.os.replace",
        side_effect=OSError("disk full"),
    ):
        with pytest.raises(StorageError) as exc_info:
            await store.write({"version": 1, "items": ["lost"]})

    assert exc_info.value.kind is ErrorKind.STORAGE
    assert exc_info.value.retryable is True
    assert json.loads(store_path.read_text(encoding="utf-8"))["items"] == ["kept"]


@pytest.mark.asyncio
async def test_lock_serializes_read_modify_write(store: JsonDocumentStore) -> None:
    async def increment() -> None:
        async with store.lock:
            doc = await store.read()
            doc["items"].append(len(doc["items"]))
            await asyncio.sleep(0)
            await store.write(doc)

    await asyncio.gather(*(increment() for _ in range(20)))

    doc = await store.read()
    assert doc["items"] == list(range(20))
