"""AlphaVantage provider: annual income statement and earnings."""

from __future__ import annotations

from urllib.parse import urlencode

from stockdb.providers.base import BaseDataProvider


class AlphaVantageProvider(BaseDataProvider):
    """alphavantage.co query API, endpoint passed as ``function``."""

    name = "alphavantage"
    credential_property = "ALPHA_VANTAGE_API_KEY"
    base_url = "https://www.alphavantage.co/query"

    def build_url(self, endpoint: str, ticker: str, credential: str) -> str:
        params = urlencode({"function": endpoint, "symbol": ticker, "apikey": credential})
        return f"{self.base_url}?{params}"
