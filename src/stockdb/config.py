"""stockdb configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StoreBackend(Enum):
    """Supported cache store backends."""

    MEMORY = "memory"
    FILE = "file"
    REST = "rest"
    MONGO = "mongo"
    NONE = "none"


DEFAULT_CACHE_TTL_SECONDS = 21600
DEFAULT_FX_FALLBACK_RATE = 0.95


@dataclass
class StockDBConfig:
    """Configuration for StockDBService.

    Attributes:
        store_backend: Cache store: memory, file, rest, mongo or none.
        cache_dir: Directory for the file store.
        cache_ttl_seconds: TTL applied to successful provider responses.
        rest_store_url: Base URL of the hosted JSON document store.
        rest_store_auth: Auth token appended to REST store requests.
        mongo_uri: MongoDB connection string for the mongo store.
        mongo_database: Database holding the cache collection.
        mongo_collection: Cache collection name.
        request_timeout_seconds: Per-request HTTP timeout.
        max_credential_attempts: Upper bound on credentials tried per fetch;
            None tries every configured credential.
        fx_fallback_rate: Rate used when the FX lookup fails.
        allow_zero_quarterly: Report a zero quarterly dividend sum as 0.0
            instead of an "invalid div" error.
        env_file: Optional ``.env`` file overlaid by the process environment
            when resolving credentials.
    """

    store_backend: StoreBackend = StoreBackend.MEMORY
    cache_dir: str = "data/cache"
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    rest_store_url: str | None = None
    rest_store_auth: str | None = None
    mongo_uri: str | None = None
    mongo_database: str = "stock_db"
    mongo_collection: str = "fs_cache"
    request_timeout_seconds: float = 10.0
    max_credential_attempts: int | None = None
    fx_fallback_rate: float = DEFAULT_FX_FALLBACK_RATE
    allow_zero_quarterly: bool = False
    env_file: str | None = ".env"
