"""Historical daily FX rates with a static fallback."""

from __future__ import annotations

import json
import logging
from urllib.parse import urlencode

from stockdb.config import DEFAULT_FX_FALLBACK_RATE
from stockdb.store import CacheStore
from stockdb.transport import HttpFetcher

logger = logging.getLogger(__name__)


class FxRateLookup:
    """Look up the ``src -> tgt`` rate for a day from exchangerate.host.

    Resolved rates are cached without expiry. Failures return the
    fallback rate and are never raised.
    """

    base_url = "https://api.exchangerate.host"

    def __init__(
        self,
        store: CacheStore,
        http: HttpFetcher,
        fallback: float = DEFAULT_FX_FALLBACK_RATE,
    ) -> None:
        self.store = store
        self.http = http
        self.fallback = fallback

    def rate(
        self,
        day: str,
        src: str,
        tgt: str,
        fallback: float | None = None,
    ) -> float:
        """Return the rate on ``day`` (``YYYY-MM-DD``), or ``fallback``."""
        if fallback is None:
            fallback = self.fallback
        src, tgt = src.upper(), tgt.upper()
        if src == tgt:
            return 1.0

        key = f"FX_{src}_{tgt}_{day}"
        try:
            cached = self.store.get(key)
            if cached:
                return float(cached)
        except Exception as exc:
            logger.warning("FX cache read failed for %s: %s", key, exc)

        try:
            url = f"{self.base_url}/{day}?{urlencode({'base': src, 'symbols': tgt})}"
            resp = self.http.get(url)
            if not resp.ok:
                raise ValueError(f"HTTP {resp.status}")
            value = float(json.loads(resp.body)["rates"][tgt])
        except Exception as exc:
            logger.warning(
                "FX lookup %s->%s on %s failed (%s); using fallback %.4f",
                src, tgt, day, exc, fallback,
            )
            return fallback

        try:
            self.store.put(key, value, None)
        except Exception as exc:
            logger.warning("FX cache write failed for %s: %s", key, exc)
        return value
