"""Durable single-document JSON store with atomic full rewrites.

Each store is one JSON file rewritten in full on every mutation. Writes go to
a sibling temporary file which is fsynced and then renamed over the target,
so a crash mid-write leaves the previous version intact.

The store owns an asyncio.Lock. Mutating callers hold it across their whole
read-modify-write so two requests on the same event loop can never interleave
and lose an update. Blocking file I/O runs in a worker thread.
"""

import asyncio
import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from dexledger.exceptions import StorageError
from dexledger.logging import get_logger

logger = get_logger(__name__)


class JsonDocumentStore:
    """Async wrapper around one JSON document on disk.

    Usage:
        store = JsonDocumentStore("data/pools.json", lambda: {"version": 1})
        async with store.lock:
            doc = await store.read()
            doc["pools"].append(...)
            await store.write(doc)

    Args:
        path: Location of the JSON document.
        default_factory: Builds the document used when the file is missing
            or unreadable.
    """

    def __init__(self, path: str | Path, default_factory: Callable[[], dict[str, Any]]) -> None:
        self._path = Path(path)
        self._default_factory = default_factory
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock(self) -> asyncio.Lock:
        """Single-writer lock; hold it for any read-modify-write sequence."""
        return self._lock

    async def read(self) -> dict[str, Any]:
        """Load the document, falling back to a fresh default.

        A missing file or a file that does not hold a JSON object yields the
        default document. Any other I/O failure raises StorageError.
        """
        return await asyncio.to_thread(self._read_sync)

    async def write(self, document: dict[str, Any]) -> None:
        """Atomically replace the document on disk.

        Raises:
            StorageError: If the temporary file cannot be written or renamed.
                The previous document is left untouched in that case.
        """
        await asyncio.to_thread(self._write_sync, document)

    def _read_sync(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self._default_factory()
        except OSError as e:
            raise StorageError(f"Failed to read store: {e}") from e

        try:
            data = json.loads(raw or "{}")
        except json.JSONDecodeError:
            logger.error("store_document_corrupt", path=str(self._path))
            return self._default_factory()

        if not isinstance(data, dict):
            logger.error("store_document_not_object", path=str(self._path))
            return self._default_factory()
        return data

    def _write_sync(self, document: dict[str, Any]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error("store_write_failed", path=str(self._path), error=str(e))
            raise StorageError(f"Failed to write store: {e}") from e
