"""Fiscal-year dividend reconciliation.

Issuers report dividends inconsistently: some declare one lump "Annual"
figure, some a "Final" payment preceded by one or more "Interim" payments,
some only unlabelled quarterly payments. ``DividendReconciler`` normalises
all three styles to a single total for the fiscal year that ends on
``year + 1``-``fiscal_year_end``.

Rules, first match wins:

1. Annual: an ``Annual`` event dated in ``year + 1`` is the total.
2. Final + Interim: a ``Final`` event dated in ``year + 1`` plus every
   interim (or unlabelled) payment after the previous non-interim event
   and before the final.
3. Quarterly: the sum of quarterly (or unlabelled) payments inside the
   fiscal window ``(year-FYE, year+1-FYE]``.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import pandas as pd

from stockdb.errors import ErrorCode
from stockdb.models.dividend import DividendEvent, DividendPeriod
from stockdb.models.query import DEFAULT_FISCAL_YEAR_END, FiscalYearQuery
from stockdb.result import Err, MetricResult, Ok

logger = logging.getLogger(__name__)

DIVIDEND_PROVIDER = "eodhd"
DIVIDEND_ENDPOINT = "div"

_COLUMNS = ["value", "date", "period", "currency"]


class JsonFetcher(Protocol):
    def fetch(self, ticker: str, provider: str, endpoint: str) -> Any:
        ...


def clean_dividend_frame(records: list[Any]) -> pd.DataFrame:
    """Load raw provider records into a date-sorted DataFrame.

    Records without a usable ``value`` (missing, zero or non-numeric) or
    ``date`` (missing or unparsable) are dropped. ``period`` becomes a
    ``DividendPeriod`` or None. Dates with an offset are converted to UTC
    and plain dates are taken as UTC, so ``date`` is always tz-naive. The
    input records are not modified.
    """
    rows = [r for r in records if isinstance(r, dict)]
    frame = pd.DataFrame(rows, columns=_COLUMNS)

    frame["value"] = pd.to_numeric(frame["value"], errors="coerce")
    frame["date"] = pd.to_datetime(
        frame["date"], errors="coerce", format="ISO8601", utc=True,
    ).dt.tz_convert(None)
    frame["period"] = frame["period"].map(
        lambda raw: DividendPeriod.parse(raw) if isinstance(raw, str) else None
    ).astype(object)

    usable = frame["value"].notna() & (frame["value"] != 0) & frame["date"].notna()
    frame = frame[usable]
    return frame.sort_values("date", kind="stable").reset_index(drop=True)


def parse_dividend_events(records: list[Any]) -> list[DividendEvent]:
    """Return the usable records as ``DividendEvent`` objects, oldest first."""
    frame = clean_dividend_frame(records)
    return [
        DividendEvent(
            value=float(row.value),
            date=row.date.date(),
            period=row.period,
            currency=row.currency if isinstance(row.currency, str) else None,
        )
        for row in frame.itertuples(index=False)
    ]


class DividendReconciler:
    """Turn a ticker's dividend history into one fiscal-year total.

    Args:
        fetcher: Anything with ``fetch(ticker, provider, endpoint)``,
            normally a ``FallbackFetcher``.
        allow_zero_quarterly: Report a zero quarterly sum as ``Ok(0.0)``.
            By default it is ``Err(INVALID_DIVIDEND)`` because a zero total
            usually means the history has no usable events for the year.
    """

    def __init__(self, fetcher: JsonFetcher, allow_zero_quarterly: bool = False) -> None:
        self.fetcher = fetcher
        self.allow_zero_quarterly = allow_zero_quarterly

    def reconcile(
        self,
        ticker: str,
        year: int,
        fiscal_year_end: str = DEFAULT_FISCAL_YEAR_END,
    ) -> MetricResult:
        """Fetch the dividend history and reconcile it. Never raises."""
        try:
            query = FiscalYearQuery(ticker=ticker, year=int(year), fiscal_year_end=fiscal_year_end)
        except ValueError as exc:
            return Err(ErrorCode.VALIDATION_FAILED, str(exc))

        try:
            records = self.fetcher.fetch(ticker, DIVIDEND_PROVIDER, DIVIDEND_ENDPOINT)
            return self.reconcile_records(records, query)
        except Exception as exc:
            logger.warning("Dividend lookup failed for %s %s: %s", ticker, year, exc)
            return Err.from_exception(exc)

    def reconcile_records(self, records: Any, query: FiscalYearQuery) -> MetricResult:
        """Apply the annual / final+interim / quarterly rules to raw records."""
        if not isinstance(records, list) or not records:
            return Err(ErrorCode.NO_DATA, "No data")

        frame = clean_dividend_frame(records)
        period = frame["period"]
        in_next_year = frame["date"].dt.year == query.year + 1

        # 1. Annual declaration covers the whole year
        annual = frame[(period == DividendPeriod.ANNUAL) & in_next_year]
        if not annual.empty:
            logger.debug("%s %s: annual dividend", query.ticker, query.year)
            return Ok(float(annual["value"].iloc[0]))

        # 2. Final plus the interims of the same payment cycle
        finals = frame[(period == DividendPeriod.FINAL) & in_next_year]
        if not finals.empty:
            final = finals.iloc[0]
            before_final = frame["date"] < final["date"]
            anchors = frame[before_final & (period != DividendPeriod.INTERIM)]
            interim_total = 0.0
            if not anchors.empty:
                prev_date = anchors["date"].iloc[-1]
                interim = (
                    ((period == DividendPeriod.INTERIM) | period.isna())
                    & (frame["date"] > prev_date)
                    & before_final
                )
                interim_total = float(frame.loc[interim, "value"].sum())
            logger.debug(
                "%s %s: final %.4f + interims %.4f",
                query.ticker, query.year, final["value"], interim_total,
            )
            return Ok(interim_total + float(final["value"]))

        # 3. Quarterly payments inside the fiscal window
        start, end = query.window()
        in_window = (frame["date"] > pd.Timestamp(start)) & (frame["date"] <= pd.Timestamp(end))
        quarterly = in_window & ((period == DividendPeriod.QUARTERLY) | period.isna())
        total = float(frame.loc[quarterly, "value"].sum())
        logger.debug(
            "%s %s: %d quarterly payments in (%s, %s]",
            query.ticker, query.year, int(quarterly.sum()), start, end,
        )
        if not total and not self.allow_zero_quarterly:
            return Err(ErrorCode.INVALID_DIVIDEND, "invalid div")
        return Ok(total)
