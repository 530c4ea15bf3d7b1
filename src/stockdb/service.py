"""StockDBService wires store, credentials, HTTP and the calculators."""

from __future__ import annotations

from typing import Any

from stockdb.config import StockDBConfig, StoreBackend
from stockdb.credentials import CredentialResolver, CredentialSource, EnvCredentialSource
from stockdb.dividends import (
    DIVIDEND_ENDPOINT,
    DIVIDEND_PROVIDER,
    DividendReconciler,
    parse_dividend_events,
)
from stockdb.fetcher import FallbackFetcher
from stockdb.fx import FxRateLookup
from stockdb.metrics import MetricComposer
from stockdb.models.dividend import DividendEvent
from stockdb.models.query import DEFAULT_FISCAL_YEAR_END
from stockdb.result import MetricResult
from stockdb.store import CacheStore, FileStore, MemoryStore, MongoStore, NoStore, RestStore
from stockdb.transport import HttpFetcher, RequestsFetcher


def create_store(config: StockDBConfig, http: HttpFetcher) -> CacheStore:
    """Build the cache store selected by ``config.store_backend``."""
    if config.store_backend == StoreBackend.MEMORY:
        return MemoryStore()
    if config.store_backend == StoreBackend.FILE:
        return FileStore(config.cache_dir)
    if config.store_backend == StoreBackend.REST:
        return RestStore(config.rest_store_url or "", config.rest_store_auth or "", http)
    if config.store_backend == StoreBackend.MONGO:
        return MongoStore(
            config.mongo_uri,
            database=config.mongo_database,
            collection_name=config.mongo_collection,
            timeout_ms=int(config.request_timeout_seconds * 1000),
        )
    return NoStore()


class StockDBService:
    """Public entry points: ``get_div`` and ``get_metric``.

    Usage::

        from stockdb import create_service_from_env
        svc = create_service_from_env()
        svc.get_div("ASML.AS", 2019).to_cell()

    Both entry points return ``Ok`` or ``Err`` and never raise.
    """

    def __init__(
        self,
        config: StockDBConfig | None = None,
        credentials: CredentialSource | None = None,
        http: HttpFetcher | None = None,
        store: CacheStore | None = None,
    ) -> None:
        self.config = config or StockDBConfig()
        self.http = http or RequestsFetcher(timeout=self.config.request_timeout_seconds)
        self.store = store or create_store(self.config, self.http)
        self.credentials = CredentialResolver(
            credentials or EnvCredentialSource(self.config.env_file)
        )

        self.fetcher = FallbackFetcher(
            self.store,
            self.credentials,
            self.http,
            ttl_seconds=self.config.cache_ttl_seconds,
            max_attempts=self.config.max_credential_attempts,
        )
        self.dividends = DividendReconciler(
            self.fetcher, allow_zero_quarterly=self.config.allow_zero_quarterly,
        )
        self.fx = FxRateLookup(self.store, self.http, fallback=self.config.fx_fallback_rate)
        self.metrics = MetricComposer(self.fetcher, self.dividends, self.fx)

    # ------------------------------------------------------------ dividends

    def get_div(
        self,
        ticker: str,
        year: int,
        fiscal_year_end: str = DEFAULT_FISCAL_YEAR_END,
    ) -> MetricResult:
        """Fiscal-year dividend total for ``ticker``."""
        return self.dividends.reconcile(ticker, year, fiscal_year_end)

    def get_dividend_events(self, ticker: str) -> list[DividendEvent]:
        """Usable dividend history for ``ticker``, oldest first. May raise."""
        records = self.fetcher.fetch(ticker, DIVIDEND_PROVIDER, DIVIDEND_ENDPOINT)
        return parse_dividend_events(records if isinstance(records, list) else [])

    # -------------------------------------------------------------- metric

    def get_metric(
        self,
        ticker: str,
        year: int,
        target_currency: str = "EUR",
        fiscal_year_end: str = DEFAULT_FISCAL_YEAR_END,
    ) -> MetricResult:
        """Dividend per weighted share, converted from USD to ``target_currency``."""
        return self.metrics.compose(ticker, year, target_currency, fiscal_year_end)

    # ------------------------------------------------------------- generic

    def fetch(self, ticker: str, provider: str, endpoint: str) -> Any:
        return self.fetcher.fetch(ticker, provider, endpoint)

    def fx_rate(self, day: str, src: str, tgt: str) -> float:
        return self.fx.rate(day, src, tgt)

    def clear_cache(self) -> None:
        self.store.clear_all()
