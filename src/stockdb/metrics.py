"""Per-share dividend metric in a target currency."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from stockdb.dividends import DividendReconciler, JsonFetcher
from stockdb.errors import ErrorCode
from stockdb.fx import FxRateLookup
from stockdb.models.query import DEFAULT_FISCAL_YEAR_END
from stockdb.result import Err, MetricResult, Ok

logger = logging.getLogger(__name__)

REPORT_PROVIDER = "alphavantage"
INCOME_ENDPOINT = "INCOME_STATEMENT"
EARNINGS_ENDPOINT = "EARNINGS"


def find_annual_report(payload: Any, section: str, year: int) -> dict[str, Any] | None:
    """Return the first report in ``payload[section]`` for fiscal ``year``."""
    if not isinstance(payload, dict):
        return None
    prefix = str(year)
    for report in payload.get(section) or []:
        if isinstance(report, dict) and str(report.get("fiscalDateEnding", "")).startswith(prefix):
            return report
    return None


class MetricComposer:
    """Compose ``dividend * fx / weighted_shares`` for one ticker-year.

    ``weighted_shares`` is derived as ``net_income / eps`` from the
    AlphaVantage annual income statement and annual earnings, which are
    fetched concurrently.
    """

    def __init__(
        self,
        fetcher: JsonFetcher,
        dividends: DividendReconciler,
        fx: FxRateLookup,
    ) -> None:
        self.fetcher = fetcher
        self.dividends = dividends
        self.fx = fx

    def compose(
        self,
        ticker: str,
        year: int,
        target_currency: str = "EUR",
        fiscal_year_end: str = DEFAULT_FISCAL_YEAR_END,
    ) -> MetricResult:
        """Return the metric or an ``Err``. Never raises."""
        try:
            return self._compose(ticker, int(year), target_currency, fiscal_year_end)
        except Exception as exc:
            logger.warning("Metric computation failed for %s %s: %s", ticker, year, exc)
            return Err.from_exception(exc)

    def _compose(
        self,
        ticker: str,
        year: int,
        target_currency: str,
        fiscal_year_end: str,
    ) -> MetricResult:
        with ThreadPoolExecutor(max_workers=2) as executor:
            income_future = executor.submit(
                self.fetcher.fetch, ticker, REPORT_PROVIDER, INCOME_ENDPOINT,
            )
            earnings_future = executor.submit(
                self.fetcher.fetch, ticker, REPORT_PROVIDER, EARNINGS_ENDPOINT,
            )
            income = income_future.result()
            earnings = earnings_future.result()

        report = find_annual_report(income, "annualReports", year)
        eps_report = find_annual_report(earnings, "annualEarnings", year)
        if report is None or eps_report is None:
            return Err(ErrorCode.MISSING_REPORT, "Missing reports")

        try:
            net_income = float(report["netIncome"])
            eps = float(eps_report["reportedEPS"])
        except (KeyError, TypeError, ValueError):
            return Err(ErrorCode.VALIDATION_FAILED, "Invalid report values")

        if eps == 0:
            return Err(ErrorCode.DIVISION_BY_ZERO, f"Reported EPS is zero for {ticker} {year}")
        weighted_shares = net_income / eps
        if weighted_shares == 0:
            return Err(ErrorCode.DIVISION_BY_ZERO, f"Net income is zero for {ticker} {year}")

        dividend = self.dividends.reconcile(ticker, year, fiscal_year_end)
        if not isinstance(dividend, Ok):
            return dividend

        fx = self.fx.rate(f"{year}-12-31", "USD", target_currency)
        return Ok((dividend.value * fx) / weighted_shares)
