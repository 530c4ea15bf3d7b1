"""stockdb models."""

from stockdb.models.cache_entry import CacheEntry
from stockdb.models.dividend import DividendEvent, DividendPeriod
from stockdb.models.query import DEFAULT_FISCAL_YEAR_END, FiscalYearQuery

__all__ = [
    "CacheEntry",
    "DividendEvent",
    "DividendPeriod",
    "FiscalYearQuery",
    "DEFAULT_FISCAL_YEAR_END",
]
