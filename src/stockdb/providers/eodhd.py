"""EODHD provider: dividend history (``div`` endpoint)."""

from __future__ import annotations

from urllib.parse import quote

from stockdb.providers.base import BaseDataProvider


class EODHDProvider(BaseDataProvider):
    """eodhd.com REST API, token passed as ``api_token``."""

    name = "eodhd"
    credential_property = "EODHD_API_TOKEN"
    base_url = "https://eodhd.com/api"

    def build_url(self, endpoint: str, ticker: str, credential: str) -> str:
        return (
            f"{self.base_url}/{quote(endpoint, safe='')}/{quote(ticker, safe='.')}"
            f"?api_token={quote(credential, safe='')}&fmt=json"
        )
