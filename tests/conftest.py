"""Shared fixtures for stockdb tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from stockdb.config import StockDBConfig
from stockdb.credentials import CredentialResolver, MappingCredentialSource
from stockdb.fetcher import FallbackFetcher
from stockdb.service import StockDBService
from stockdb.store import MemoryStore
from stockdb.transport import HttpFetcher, HttpResponse


def json_response(data: Any, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps(data))


class ScriptedHttp(HttpFetcher):
    """Fake HTTP client answering GETs from scripted routes.

    A route matches when every fragment occurs in the URL. Its responses
    are served in order; the last one repeats. Exceptions are raised.
    Unmatched URLs get a 404.
    """

    def __init__(self) -> None:
        self.routes: list[tuple[tuple[str, ...], list[Any]]] = []
        self.calls: list[str] = []

    def route(self, fragments: str | tuple[str, ...], *responses: Any) -> None:
        if isinstance(fragments, str):
            fragments = (fragments,)
        self.routes.append((fragments, list(responses)))

    def get(self, url: str) -> HttpResponse:
        self.calls.append(url)
        for fragments, queue in self.routes:
            if all(f in url for f in fragments):
                item = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(item, Exception):
                    raise item
                return item
        return HttpResponse(status=404, body="")

    def calls_matching(self, fragment: str) -> list[str]:
        return [c for c in self.calls if fragment in c]


@pytest.fixture
def http() -> ScriptedHttp:
    return ScriptedHttp()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def credentials() -> MappingCredentialSource:
    return MappingCredentialSource({
        "EODHD_API_TOKEN": '["eod1", "eod2"]',
        "ALPHA_VANTAGE_API_KEY": "av1",
    })


@pytest.fixture
def fetcher(store, credentials, http) -> FallbackFetcher:
    return FallbackFetcher(store, CredentialResolver(credentials), http)


@pytest.fixture
def service(store, credentials, http) -> StockDBService:
    return StockDBService(
        StockDBConfig(env_file=None),
        credentials=credentials,
        http=http,
        store=store,
    )


@pytest.fixture
def quarterly_dividends() -> list[dict[str, Any]]:
    """Four unlabelled payments inside the 2019 fiscal year (FYE 05-31)."""
    return [
        {"date": "2019-08-15", "value": 0.5, "currency": "USD"},
        {"date": "2019-11-15", "value": 0.5, "currency": "USD"},
        {"date": "2020-02-14", "value": 0.5, "currency": "USD"},
        {"date": "2020-05-15", "value": 0.5, "currency": "USD"},
    ]


@pytest.fixture
def income_statement() -> dict[str, Any]:
    return {
        "symbol": "ACME",
        "annualReports": [
            {"fiscalDateEnding": "2020-12-31", "netIncome": "2000000"},
            {"fiscalDateEnding": "2019-12-31", "netIncome": "1000000"},
        ],
    }


@pytest.fixture
def earnings() -> dict[str, Any]:
    return {
        "symbol": "ACME",
        "annualEarnings": [
            {"fiscalDateEnding": "2020-12-31", "reportedEPS": "4.00"},
            {"fiscalDateEnding": "2019-12-31", "reportedEPS": "2.00"},
        ],
    }
