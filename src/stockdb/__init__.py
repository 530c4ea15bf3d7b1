"""stockdb: fiscal-year dividends and per-share dividend metrics.

Cache-first provider access (EODHD, AlphaVantage) with API-key fallback,
dividend period reconciliation and a cross-currency per-share metric.

Quick start::

    from stockdb import create_service_from_env
    svc = create_service_from_env()
    result = svc.get_div("ASML.AS", 2019)
    print(result.to_cell())
"""

from __future__ import annotations

import os

from stockdb.config import StockDBConfig, StoreBackend
from stockdb.credentials import (
    CredentialResolver,
    CredentialSource,
    EnvCredentialSource,
    MappingCredentialSource,
)
from stockdb.dividends import DividendReconciler, parse_dividend_events
from stockdb.errors import ErrorCode, ProviderExhaustedError, StockDBError
from stockdb.fetcher import FallbackFetcher
from stockdb.fx import FxRateLookup
from stockdb.metrics import MetricComposer
from stockdb.models.dividend import DividendEvent, DividendPeriod
from stockdb.models.query import FiscalYearQuery
from stockdb.result import Err, MetricResult, Ok
from stockdb.service import StockDBService
from stockdb.store import CacheStore, FileStore, MemoryStore, MongoStore, NoStore, RestStore

__version__ = "0.1.0"

__all__ = [
    # Service
    "StockDBService",
    "create_service_from_env",
    "get_div",
    "get_metric",
    # Components
    "FallbackFetcher",
    "DividendReconciler",
    "MetricComposer",
    "FxRateLookup",
    "parse_dividend_events",
    # Stores
    "CacheStore",
    "MemoryStore",
    "FileStore",
    "RestStore",
    "MongoStore",
    "NoStore",
    # Credentials
    "CredentialSource",
    "CredentialResolver",
    "EnvCredentialSource",
    "MappingCredentialSource",
    # Config
    "StockDBConfig",
    "StoreBackend",
    # Results & errors
    "Ok",
    "Err",
    "MetricResult",
    "StockDBError",
    "ProviderExhaustedError",
    "ErrorCode",
    # Models
    "DividendEvent",
    "DividendPeriod",
    "FiscalYearQuery",
]


def config_from_env() -> StockDBConfig:
    """Read ``StockDBConfig`` from environment variables.

    Environment variables:
        STOCKDB_CACHE: Store backend, one of "memory", "file", "rest", "mongo", "none" (default: "memory").
        STOCKDB_CACHE_DIR: File store directory (default: "data/cache").
        STOCKDB_CACHE_TTL: Provider response TTL in seconds (default: 21600).
        FIREBASE_URL: REST store base URL.
        FIREBASE_AUTH: REST store auth token.
        MONGO_URI: MongoDB connection string for the mongo store.
        MONGO_DATABASE: MongoDB database (default: "stock_db").
        MONGO_COLLECTION: MongoDB cache collection (default: "fs_cache").
        STOCKDB_HTTP_TIMEOUT: Per-request timeout in seconds (default: 10).
        STOCKDB_MAX_KEY_ATTEMPTS: Max credentials tried per fetch (default: all).
        STOCKDB_ALLOW_ZERO_QUARTERLY: "1"/"true" to report a zero quarterly sum as 0.
        STOCKDB_ENV_FILE: ``.env`` file read for credentials (default: ".env").
    """
    max_attempts = os.getenv("STOCKDB_MAX_KEY_ATTEMPTS")
    return StockDBConfig(
        store_backend=StoreBackend(os.getenv("STOCKDB_CACHE", "memory").strip().lower()),
        cache_dir=os.getenv("STOCKDB_CACHE_DIR", "data/cache"),
        cache_ttl_seconds=int(os.getenv("STOCKDB_CACHE_TTL", "21600")),
        rest_store_url=os.getenv("FIREBASE_URL"),
        rest_store_auth=os.getenv("FIREBASE_AUTH"),
        mongo_uri=os.getenv("MONGO_URI"),
        mongo_database=os.getenv("MONGO_DATABASE", "stock_db"),
        mongo_collection=os.getenv("MONGO_COLLECTION", "fs_cache"),
        request_timeout_seconds=float(os.getenv("STOCKDB_HTTP_TIMEOUT", "10")),
        max_credential_attempts=int(max_attempts) if max_attempts else None,
        allow_zero_quarterly=os.getenv("STOCKDB_ALLOW_ZERO_QUARTERLY", "").lower() in ("1", "true", "yes"),
        env_file=os.getenv("STOCKDB_ENV_FILE", ".env"),
    )


def create_service_from_env() -> StockDBService:
    """Zero-config factory that reads store settings and API keys from env vars.

    Provider credentials are read through ``EnvCredentialSource``:
        EODHD_API_TOKEN: EODHD token, or a JSON array of tokens.
        ALPHA_VANTAGE_API_KEY: AlphaVantage key, or a JSON array of keys.
    """
    return StockDBService(config_from_env())


def get_div(ticker: str, year: int, fiscal_year_end: str = "05-31") -> MetricResult:
    """Fiscal-year dividend total using a service built from the environment."""
    try:
        svc = create_service_from_env()
    except (StockDBError, ValueError) as exc:
        return Err.from_exception(exc)
    return svc.get_div(ticker, year, fiscal_year_end)


def get_metric(ticker: str, year: int, target_currency: str = "EUR") -> MetricResult:
    """Per-share dividend metric using a service built from the environment."""
    try:
        svc = create_service_from_env()
    except (StockDBError, ValueError) as exc:
        return Err.from_exception(exc)
    return svc.get_metric(ticker, year, target_currency)
