"""Cache-first provider fetch with ordered credential fallback."""

from __future__ import annotations

import json
import logging
from typing import Any

from stockdb.config import DEFAULT_CACHE_TTL_SECONDS
from stockdb.credentials import CredentialResolver, mask_secret
from stockdb.errors import ErrorCode, ProviderExhaustedError, StockDBError
from stockdb.providers import get_provider
from stockdb.store import CacheStore
from stockdb.transport import HttpFetcher

logger = logging.getLogger(__name__)

QUOTA_EXHAUSTED = 402


class FallbackFetcher:
    """Central fetch path: cache -> credential 1 -> credential 2 -> ...

    Usage::

        fetcher = FallbackFetcher(store, resolver, RequestsFetcher())
        events = fetcher.fetch("ASML.AS", "eodhd", "div")
    """

    def __init__(
        self,
        store: CacheStore,
        credentials: CredentialResolver,
        http: HttpFetcher,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        max_attempts: int | None = None,
    ) -> None:
        self.store = store
        self.credentials = credentials
        self.http = http
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts

    def fetch(self, ticker: str, provider: str, endpoint: str) -> Any:
        """Return the provider's JSON for ``endpoint`` on ``ticker``.

        Tries each credential in order. A 402 (quota exhausted) or any
        failure moves on to the next credential; the failure of the last
        credential is raised as-is. Non-empty responses are cached,
        empty ones are returned without caching.

        Raises:
            ProviderExhaustedError: every credential answered 402.
            StockDBError: no credentials are configured, or the last
                credential got an unexpected HTTP status.
        """
        provider_def = get_provider(provider)
        key = provider_def.cache_key(endpoint, ticker)

        # 1. Cache hit?
        cached = self._cache_get(key)
        if cached:
            logger.debug("Cache hit for %s", key)
            return cached
        logger.debug("Cache miss for %s", key)

        # 2. Try credentials
        candidates = self.credentials.labelled(provider)
        if not candidates:
            raise StockDBError(
                f"No {provider_def.name} credentials configured. Set {provider_def.credential_property}.",
                code=ErrorCode.AUTH_FAILED,
            )
        if self.max_attempts is not None:
            candidates = candidates[: self.max_attempts]

        for i, (label, secret) in enumerate(candidates):
            is_last = i == len(candidates) - 1
            try:
                resp = self.http.get(provider_def.build_url(endpoint, ticker, secret))
                if resp.ok:
                    data = json.loads(resp.body) if resp.body.strip() else None
                    if data:
                        self._cache_put(key, data)
                    return data
                if resp.status == QUOTA_EXHAUSTED:
                    logger.warning(
                        "API quota exhausted for %s (%s), trying next key",
                        label, mask_secret(secret),
                    )
                    continue
                raise StockDBError(
                    f"API error: {resp.status}",
                    code=_status_code(resp.status),
                    retryable=True,
                )
            except Exception as exc:
                if is_last:
                    raise
                logger.warning(
                    "Error with %s (%s): %s, trying next key",
                    label, mask_secret(secret), exc,
                )
                continue

        raise ProviderExhaustedError(provider_def.name)

    # ------------------------------------------------------------ internal

    def _cache_get(self, key: str) -> Any | None:
        try:
            return self.store.get(key)
        except Exception as exc:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            return None

    def _cache_put(self, key: str, data: Any) -> None:
        try:
            self.store.put(key, data, self.ttl_seconds)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)


def _status_code(status: int) -> ErrorCode:
    if status in (401, 403):
        return ErrorCode.AUTH_FAILED
    if status == 404:
        return ErrorCode.NOT_FOUND
    if status == 429:
        return ErrorCode.RATE_LIMITED
    return ErrorCode.PROVIDER_ERROR
