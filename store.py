"""
Record store: collections of JSON objects keyed by "id".

The API only needs two collections, "users" and "books". A read of a
collection that was never written returns an empty list, and a write replaces
the whole collection.

Handlers doing read-modify-write must hold ``store.lock(collection)`` for the
whole cycle. The lock is per process; two processes sharing one data
directory can still overwrite each other's changes.
"""

import copy
import json
import logging
import os
import tempfile
import threading
from collections import defaultdict
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional

from config import settings

logger = logging.getLogger(__name__)

USERS = "users"
BOOKS = "books"
COLLECTIONS = (USERS, BOOKS)


class StoreError(Exception):
    """The backing storage could not be read or written."""


class RecordStore:
    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = defaultdict(threading.RLock)
        self._locks_guard = threading.Lock()

    def read(self, collection: str) -> list[dict]:
        raise NotImplementedError

    def write(self, collection: str, records: list[dict]) -> None:
        raise NotImplementedError

    @contextmanager
    def lock(self, collection: str) -> Iterator[None]:
        with self._locks_guard:
            collection_lock = self._locks[collection]
        with collection_lock:
            yield

    def find(self, collection: str, record_id: str) -> Optional[dict]:
        return self.find_by(collection, "id", record_id)

    def find_by(self, collection: str, key: str, value) -> Optional[dict]:
        for record in self.read(collection):
            if record.get(key) == value:
                return record
        return None

    def append(self, collection: str, record: dict) -> None:
        with self.lock(collection):
            records = self.read(collection)
            records.append(record)
            self.write(collection, records)


class JsonFileStore(RecordStore):
    """One pretty-printed JSON array per collection under ``data_dir``."""

    def __init__(self, data_dir: str | os.PathLike) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)

    def _path(self, collection: str) -> Path:
        if collection not in COLLECTIONS:
            raise StoreError(f"Unknown collection: {collection}")
        return self.data_dir / f"{collection}.json"

    def read(self, collection: str) -> list[dict]:
        path = self._path(collection)
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as exc:
            # ValueError covers both JSONDecodeError and UnicodeDecodeError
            logger.error("Failed to read %s: %s", path, exc)
            raise StoreError(f"Could not read {collection}") from exc

        if not isinstance(data, list) or not all(isinstance(record, dict) for record in data):
            logger.error("%s does not contain a JSON array of objects", path)
            raise StoreError(f"Corrupt {collection} collection")
        return data

    def write(self, collection: str, records: list[dict]) -> None:
        path = self._path(collection)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file first so readers never see a partial array.
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{collection}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(records, fh, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to write %s: %s", path, exc)
            raise StoreError(f"Could not write {collection}") from exc


class InMemoryStore(RecordStore):
    """Same contract as JsonFileStore, kept in a dict. Used by the tests."""

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[str, list[dict]] = {}

    def read(self, collection: str) -> list[dict]:
        return copy.deepcopy(self._collections.get(collection, []))

    def write(self, collection: str, records: list[dict]) -> None:
        self._collections[collection] = copy.deepcopy(records)


@lru_cache
def get_store() -> RecordStore:
    return JsonFileStore(settings.DATA_DIR)
