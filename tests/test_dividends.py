"""Tests for fiscal-year dividend reconciliation."""

from __future__ import annotations

import copy
from datetime import date

import pytest

from conftest import json_response
from stockdb.dividends import DividendReconciler, clean_dividend_frame, parse_dividend_events
from stockdb.errors import ErrorCode, ProviderExhaustedError
from stockdb.models.dividend import DividendPeriod
from stockdb.models.query import FiscalYearQuery
from stockdb.result import Err, Ok
from stockdb.transport import HttpResponse


class StaticFetcher:
    """Returns the same payload for every fetch and counts calls."""

    def __init__(self, payload=None, error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    def fetch(self, ticker, provider, endpoint):
        self.calls.append((ticker, provider, endpoint))
        if self.error is not None:
            raise self.error
        return self.payload


def _reconcile(records, year=2019, fiscal_year_end="05-31", **kwargs):
    return DividendReconciler(StaticFetcher(records), **kwargs).reconcile("ACME", year, fiscal_year_end)


FINAL_AND_INTERIMS = [
    {"value": 1, "date": "2019-08-01", "period": "Interim"},
    {"value": 1.5, "date": "2019-11-01", "period": "Interim"},
    {"value": 3, "date": "2020-06-01", "period": "Final"},
]


class TestCleaning:
    def test_drops_records_without_value_or_date(self):
        frame = clean_dividend_frame([
            {"value": 1, "date": "2020-01-01"},
            {"value": None, "date": "2020-02-01"},
            {"value": 0, "date": "2020-03-01"},
            {"date": "2020-04-01"},
            {"value": 2},
            {"value": 3, "date": "not a date"},
            {"value": "abc", "date": "2020-05-01"},
            "garbage",
        ])
        assert list(frame["value"]) == [1.0]

    def test_sorted_by_date(self):
        frame = clean_dividend_frame([
            {"value": 2, "date": "2020-06-01"},
            {"value": 1, "date": "2019-06-01"},
        ])
        assert list(frame["value"]) == [1.0, 2.0]

    def test_offset_dates_become_naive_utc(self):
        frame = clean_dividend_frame([
            {"value": 1, "date": "2020-01-01T23:30:00-02:00"},
            {"value": 2, "date": "2020-01-01"},
        ])
        assert frame["date"].dt.tz is None
        assert [d.isoformat() for d in frame["date"]] == [
            "2020-01-01T00:00:00",
            "2020-01-02T01:30:00",
        ]

    def test_does_not_mutate_input(self):
        records = copy.deepcopy(FINAL_AND_INTERIMS)
        clean_dividend_frame(records)
        assert records == FINAL_AND_INTERIMS

    def test_parse_events(self):
        events = parse_dividend_events([
            {"value": "0.25", "date": "2020-06-01", "period": "Final", "currency": "EUR"},
            {"value": 0.5, "date": "2019-06-01"},
        ])
        assert [e.date for e in events] == [date(2019, 6, 1), date(2020, 6, 1)]
        assert events[0].period is None
        assert events[1].period is DividendPeriod.FINAL
        assert events[1].value == 0.25
        assert events[1].currency == "EUR"


class TestAnnualRule:
    def test_annual_value_returned(self):
        result = _reconcile([{"value": 5, "date": "2020-07-01", "period": "Annual"}])
        assert result == Ok(5.0)

    def test_lowercase_label_is_not_annual(self):
        result = _reconcile([
            {"value": 5, "date": "2020-07-01", "period": "annual"},
            {"value": 0.5, "date": "2019-08-15", "period": "Quarterly"},
            {"value": 0.5, "date": "2019-11-15"},
        ])
        assert result == Ok(1.0)

    def test_annual_wins_over_final(self):
        result = _reconcile([
            {"value": 3, "date": "2020-04-01", "period": "Final"},
            {"value": 5, "date": "2020-07-01", "period": "Annual"},
        ])
        assert result == Ok(5.0)

    def test_annual_in_other_year_ignored(self):
        result = _reconcile([
            {"value": 5, "date": "2019-07-01", "period": "Annual"},
            {"value": 0.5, "date": "2019-09-01", "period": "Quarterly"},
        ])
        assert result == Ok(0.5)


class TestFinalInterimRule:
    def test_no_anchor_returns_final_only(self):
        assert _reconcile(FINAL_AND_INTERIMS) == Ok(3.0)

    def test_previous_final_anchors_the_cycle(self):
        records = [{"value": 2, "date": "2018-06-01", "period": "Final"}] + FINAL_AND_INTERIMS
        assert _reconcile(records) == Ok(5.5)

    def test_unlabelled_events_count_as_interims(self):
        records = [
            {"value": 2, "date": "2018-06-01", "period": "Final"},
            {"value": 1, "date": "2019-08-01", "period": "Interim"},
            {"value": 1, "date": "2019-12-01"},
            {"value": 1, "date": "2020-03-01", "period": "Interim"},
            {"value": 3, "date": "2020-06-01", "period": "Final"},
        ]
        # The unlabelled payment is both an interim and the latest
        # non-interim anchor, so only the interim after it is summed.
        assert _reconcile(records) == Ok(4.0)

    def test_unsorted_input_gives_same_answer(self):
        records = [{"value": 2, "date": "2018-06-01", "period": "Final"}] + FINAL_AND_INTERIMS
        assert _reconcile(list(reversed(records))) == Ok(5.5)

    def test_quarterly_before_final_anchors(self):
        records = [
            {"value": 1, "date": "2019-08-01", "period": "Interim"},
            {"value": 0.7, "date": "2019-10-01", "period": "Quarterly"},
            {"value": 1.5, "date": "2019-11-01", "period": "Interim"},
            {"value": 3, "date": "2020-06-01", "period": "Final"},
        ]
        assert _reconcile(records) == Ok(4.5)


class TestQuarterlyRule:
    def test_unlabelled_payments_in_window(self, quarterly_dividends):
        assert _reconcile(quarterly_dividends) == Ok(2.0)

    def test_window_is_open_closed(self):
        records = [
            {"value": 1, "date": "2019-05-31"},
            {"value": 2, "date": "2019-06-01", "period": "Quarterly"},
            {"value": 4, "date": "2020-05-31"},
            {"value": 8, "date": "2020-06-01"},
        ]
        assert _reconcile(records) == Ok(6.0)

    def test_other_periods_excluded(self):
        records = [
            {"value": 1, "date": "2019-08-01", "period": "Quarterly"},
            {"value": 10, "date": "2019-09-01", "period": "Special"},
            {"value": 10, "date": "2019-10-01", "period": "Interim"},
        ]
        assert _reconcile(records) == Ok(1.0)

    def test_custom_fiscal_year_end(self, quarterly_dividends):
        # Calendar-year FYE: only the 2020 payments fall in (2019-12-31, 2020-12-31]
        assert _reconcile(quarterly_dividends, fiscal_year_end="12-31") == Ok(1.0)

    def test_utc_timestamps(self):
        records = [
            {"value": 0.5, "date": "2019-08-15T00:00:00Z"},
            {"value": 0.5, "date": "2019-11-15T00:00:00Z"},
        ]
        assert _reconcile(records) == Ok(1.0)

    def test_mixed_offsets_and_plain_dates(self):
        records = [
            {"value": 0.5, "date": "2019-08-15T00:00:00Z"},
            {"value": 0.5, "date": "2019-11-15"},
            {"value": 0.5, "date": "2020-02-14T09:30:00+01:00"},
        ]
        assert _reconcile(records) == Ok(1.5)

    def test_zero_sum_is_invalid(self):
        result = _reconcile([{"value": 1, "date": "2010-01-01"}])
        assert isinstance(result, Err)
        assert result.code == ErrorCode.INVALID_DIVIDEND
        assert result.message == "Error: invalid div"

    def test_zero_sum_allowed_by_policy(self):
        result = _reconcile([{"value": 1, "date": "2010-01-01"}], allow_zero_quarterly=True)
        assert result == Ok(0.0)

    def test_all_records_unusable_is_invalid(self):
        result = _reconcile([{"value": None, "date": None}])
        assert result.to_cell() == "Error: invalid div"


class TestReconcilerFailures:
    def test_empty_history(self):
        result = _reconcile([])
        assert result == Err(ErrorCode.NO_DATA, "No data")
        assert result.to_cell() == "Error: No data"

    def test_non_list_payload(self):
        assert _reconcile({"error": "unknown ticker"}).to_cell() == "Error: No data"
        assert _reconcile(None).to_cell() == "Error: No data"

    def test_fetch_failure_becomes_err(self):
        reconciler = DividendReconciler(StaticFetcher(error=ProviderExhaustedError("eodhd")))
        result = reconciler.reconcile("ACME", 2019)
        assert result == Err(ErrorCode.PROVIDER_EXHAUSTED, "All eodhd API keys exhausted or failed")

    def test_invalid_fiscal_year_end(self):
        fetcher = StaticFetcher([])
        result = DividendReconciler(fetcher).reconcile("ACME", 2019, "31-05")
        assert isinstance(result, Err)
        assert result.code == ErrorCode.VALIDATION_FAILED
        assert fetcher.calls == []

    def test_fetches_eodhd_div(self):
        fetcher = StaticFetcher([])
        DividendReconciler(fetcher).reconcile("ASML.AS", 2019)
        assert fetcher.calls == [("ASML.AS", "eodhd", "div")]

    def test_reconcile_records_directly(self):
        reconciler = DividendReconciler(StaticFetcher())
        query = FiscalYearQuery("ACME", 2019)
        assert reconciler.reconcile_records(FINAL_AND_INTERIMS, query) == Ok(3.0)


class TestReconcilerWithCache:
    def test_idempotent_over_cached_input(self, fetcher, store, http):
        records = [{"value": 2, "date": "2018-06-01", "period": "Final"}] + FINAL_AND_INTERIMS
        http.route("eodhd.com", json_response(records))
        reconciler = DividendReconciler(fetcher)

        first = reconciler.reconcile("ACME", 2019)
        second = reconciler.reconcile("ACME", 2019)

        assert first == second == Ok(5.5)
        assert len(http.calls) == 1
        assert store.get("eodhd/div/ACME") == records

    def test_exhausted_keys_reported(self, fetcher, http):
        http.route("eodhd.com", HttpResponse(402, ""))
        result = DividendReconciler(fetcher).reconcile("ACME", 2019)
        assert result.to_cell() == "Error: All eodhd API keys exhausted or failed"


@pytest.mark.parametrize("year, expected", [(2018, Ok(2.0)), (2019, Ok(5.5))])
def test_consecutive_years(year, expected):
    records = [
        {"value": 2, "date": "2019-06-01", "period": "Final"},
        {"value": 1, "date": "2019-08-01", "period": "Interim"},
        {"value": 1.5, "date": "2019-11-01", "period": "Interim"},
        {"value": 3, "date": "2020-06-01", "period": "Final"},
    ]
    assert _reconcile(records, year=year) == expected
