"""Abstract base class for financial-data providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseDataProvider(ABC):
    """A remote JSON API addressed by a URL template.

    Subclasses declare the property holding their credentials and build
    the request URL for one ``(endpoint, ticker, credential)`` triple. The
    credential is embedded in the URL, so URLs must never be logged.
    """

    name: str = ""
    credential_property: str = ""

    @abstractmethod
    def build_url(self, endpoint: str, ticker: str, credential: str) -> str:
        """Return the GET URL for ``endpoint`` on ``ticker``.

        Args:
            endpoint: Provider-specific endpoint, e.g. ``div`` for EODHD or
                ``INCOME_STATEMENT`` for AlphaVantage.
            ticker: Provider ticker symbol.
            credential: API key or token.
        """
        ...

    def cache_key(self, endpoint: str, ticker: str) -> str:
        return f"{self.name}/{endpoint}/{ticker}"
