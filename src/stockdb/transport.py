"""Outbound HTTP GET used by providers, the FX lookup and the REST store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import certifi
import requests


@dataclass(frozen=True)
class HttpResponse:
    """Status code and raw body of one HTTP exchange."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpFetcher(ABC):
    """Abstract HTTP client.

    Implementations return every status code as an ``HttpResponse``; only
    transport failures (connection refused, timeout) raise.
    """

    @abstractmethod
    def get(self, url: str) -> HttpResponse:
        ...

    def request(self, method: str, url: str, payload: Any = None) -> HttpResponse:
        """Issue a non-GET request; only the REST store needs this."""
        raise NotImplementedError


class RequestsFetcher(HttpFetcher):
    """``requests.Session`` backed fetcher with a per-request timeout."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.session.verify = certifi.where()

    def get(self, url: str) -> HttpResponse:
        resp = self.session.get(url, timeout=self.timeout)
        return HttpResponse(status=resp.status_code, body=resp.text)

    def request(self, method: str, url: str, payload: Any = None) -> HttpResponse:
        resp = self.session.request(
            method.upper(),
            url,
            json=payload,
            timeout=self.timeout,
        )
        return HttpResponse(status=resp.status_code, body=resp.text)

    def close(self) -> None:
        self.session.close()
