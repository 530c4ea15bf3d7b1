"""Financial-data provider registry."""

from __future__ import annotations

from stockdb.errors import ErrorCode, StockDBError
from stockdb.providers.alphavantage import AlphaVantageProvider
from stockdb.providers.base import BaseDataProvider
from stockdb.providers.eodhd import EODHDProvider

PROVIDERS: dict[str, BaseDataProvider] = {
    EODHDProvider.name: EODHDProvider(),
    AlphaVantageProvider.name: AlphaVantageProvider(),
}


def get_provider(name: str) -> BaseDataProvider:
    """Look up a provider by name (case-insensitive)."""
    key = name.strip().lower()
    if key not in PROVIDERS:
        raise StockDBError(
            f"Unsupported provider '{name}'. Supported: {', '.join(PROVIDERS)}",
            code=ErrorCode.NOT_FOUND,
        )
    return PROVIDERS[key]


__all__ = [
    "AlphaVantageProvider",
    "BaseDataProvider",
    "EODHDProvider",
    "PROVIDERS",
    "get_provider",
]
