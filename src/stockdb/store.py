"""Cache store backends: Memory (TTL), File (JSON), REST document store and MongoDB.

Every backend implements lazy expiry: an entry read after its
``expires_at`` is deleted on that read and reported as a miss. There is no
background sweep.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any
from urllib.parse import quote

import pymongo
from pymongo.errors import PyMongoError

from stockdb.errors import ErrorCode, StockDBError
from stockdb.models.cache_entry import CacheEntry
from stockdb.transport import HttpFetcher

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Abstract key-value store with TTL."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss or expiry."""
        ...

    @abstractmethod
    def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value; ``ttl_seconds=None`` keeps it until deleted."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def clear_all(self) -> None:
        ...


class NoStore(CacheStore):
    """No-op store that always misses."""

    def get(self, key):  # type: ignore[override]
        return None

    def put(self, key, value, ttl_seconds=None):  # type: ignore[override]
        pass

    def delete(self, key):  # type: ignore[override]
        pass

    def clear_all(self):
        pass


class MemoryStore(CacheStore):
    """In-process TTL store.

    Uses LRU eviction when ``max_entries`` is exceeded. A lock guards the
    dict because concurrent report fetches share one store.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self.max_entries = max_entries
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._store[key]
                return None
            self._store.move_to_end(key)  # refresh LRU position
            return entry.data

    def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        with self._lock:
            self._store[key] = CacheEntry.create(key, value, ttl_seconds)
            self._store.move_to_end(key)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store


_UNSAFE_SEGMENT = re.compile(r"[^A-Za-z0-9._-]")


class FileStore(CacheStore):
    """Disk store, one JSON document per key.

    Storage layout: ``{base_path}/{provider}/{endpoint}/{ticker}.json``;
    each ``/``-separated key segment becomes a directory.
    """

    def __init__(self, base_path: Path | str) -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _file_path(self, key: str) -> Path:
        segments = []
        for part in key.split("/"):
            part = _UNSAFE_SEGMENT.sub("_", part)
            if part in ("", ".", ".."):
                part = "_"
            segments.append(part)
        return self.base_path.joinpath(*segments[:-1]) / f"{segments[-1]}.json"

    def get(self, key: str) -> Any | None:
        fp = self._file_path(key)
        if not fp.exists():
            return None
        try:
            entry = CacheEntry.from_dict(json.loads(fp.read_text(encoding="utf-8")), key=key)
        except (OSError, ValueError, AttributeError) as exc:
            logger.warning("Unreadable cache file %s: %s", fp, exc)
            return None
        if entry.is_expired():
            self.delete(key)
            return None
        return entry.data

    def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        fp = self._file_path(key)
        fp.parent.mkdir(parents=True, exist_ok=True)
        entry = CacheEntry.create(key, value, ttl_seconds)
        fp.write_text(json.dumps(entry.to_dict(), indent=2), encoding="utf-8")

    def delete(self, key: str) -> None:
        self._file_path(key).unlink(missing_ok=True)

    def clear_all(self) -> None:
        for d in self.base_path.iterdir():
            if d.is_dir():
                shutil.rmtree(d)
            else:
                d.unlink()


class RestStore(CacheStore):
    """Hosted JSON document store addressed over HTTP.

    Documents live at ``{base_url}/cache/{key}.json?auth={auth}``. Dots are
    not allowed in document paths, so ``ASML.AS`` is stored as ``ASML_AS``.
    Transport failures raise ``StockDBError(CACHE_ERROR)``.
    """

    def __init__(self, base_url: str, auth: str, http: HttpFetcher) -> None:
        if not base_url or not auth:
            raise StockDBError(
                "REST store requires a base URL and auth token. "
                "Set FIREBASE_URL and FIREBASE_AUTH.",
                code=ErrorCode.AUTH_FAILED,
            )
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.http = http

    def _url(self, key: str | None) -> str:
        path = "cache" if key is None else f"cache/{quote(key.replace('.', '_'), safe='/')}"
        return f"{self.base_url}/{path}.json?auth={quote(self.auth, safe='')}"

    def get(self, key: str) -> Any | None:
        try:
            resp = self.http.get(self._url(key))
        except Exception as exc:
            raise StockDBError(
                f"REST store read failed for {key}: {exc}",
                code=ErrorCode.CACHE_ERROR,
                retryable=True,
            ) from exc
        if not resp.ok:
            return None
        try:
            raw = json.loads(resp.body) if resp.body else None
        except ValueError:
            logger.warning("REST store returned malformed document for %s", key)
            return None
        if not isinstance(raw, dict):
            return None
        entry = CacheEntry.from_dict(raw, key=key)
        if entry.is_expired():
            self.delete(key)
            return None
        return entry.data

    def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        entry = CacheEntry.create(key, value, ttl_seconds)
        self._send("PUT", key, entry.to_dict())

    def delete(self, key: str) -> None:
        self._send("DELETE", key)

    def clear_all(self) -> None:
        self._send("DELETE", None)

    def _send(self, method: str, key: str | None, payload: Any = None) -> None:
        try:
            resp = self.http.request(method, self._url(key), payload)
        except Exception as exc:
            raise StockDBError(
                f"REST store {method} failed for {key}: {exc}",
                code=ErrorCode.CACHE_ERROR,
                retryable=True,
            ) from exc
        if not resp.ok:
            raise StockDBError(
                f"REST store {method} for {key} returned {resp.status}",
                code=ErrorCode.CACHE_ERROR,
            )


class MongoStore(CacheStore):
    """MongoDB collection store, one document per key.

    Documents are ``{_id, data, createdAt, expiresAt}`` in the ``fs_cache``
    collection of ``stock_db`` by default. Writes are upserts. Driver
    failures raise ``StockDBError(CACHE_ERROR)``.

    Args:
        uri: MongoDB connection string; ignored when ``collection`` is given.
        database: Database name.
        collection_name: Collection name.
        collection: Existing collection object to use instead of connecting.
        timeout_ms: Server selection and connect timeout.
    """

    def __init__(
        self,
        uri: str | None = None,
        database: str = "stock_db",
        collection_name: str = "fs_cache",
        collection: Any = None,
        timeout_ms: int = 10_000,
    ) -> None:
        self.client: Any = None
        if collection is None:
            if not uri:
                raise StockDBError(
                    "MongoDB store requires a connection string. Set MONGO_URI.",
                    code=ErrorCode.AUTH_FAILED,
                )
            self.client = pymongo.MongoClient(
                uri,
                tz_aware=True,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
            )
            collection = self.client[database][collection_name]
        self.collection = collection

    def get(self, key: str) -> Any | None:
        try:
            doc = self.collection.find_one({"_id": key})
        except PyMongoError as exc:
            raise _mongo_error("read", key, exc) from exc
        if doc is None:
            return None
        entry = CacheEntry.from_dict(doc, key=key)
        if entry.is_expired():
            self.delete(key)
            return None
        return entry.data

    def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        entry = CacheEntry.create(key, value, ttl_seconds)
        update = {
            "$set": {
                "data": entry.data,
                "createdAt": entry.created_at,
                "expiresAt": entry.expires_at,
            }
        }
        try:
            self.collection.update_one({"_id": key}, update, upsert=True)
        except PyMongoError as exc:
            raise _mongo_error("write", key, exc) from exc

    def delete(self, key: str) -> None:
        try:
            self.collection.delete_one({"_id": key})
        except PyMongoError as exc:
            raise _mongo_error("delete", key, exc) from exc

    def clear_all(self) -> None:
        try:
            self.collection.delete_many({})
        except PyMongoError as exc:
            raise _mongo_error("clear", None, exc) from exc

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def _mongo_error(action: str, key: str | None, exc: Exception) -> StockDBError:
    return StockDBError(
        f"MongoDB store {action} failed for {key}: {exc}",
        code=ErrorCode.CACHE_ERROR,
        retryable=True,
    )
