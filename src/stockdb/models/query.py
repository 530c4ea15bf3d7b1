"""Fiscal-year query model."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

DEFAULT_FISCAL_YEAR_END = "05-31"


@dataclass(frozen=True)
class FiscalYearQuery:
    """One "dividend for ticker T in fiscal year Y" question.

    Attributes:
        ticker: Provider ticker, e.g. ``ASML.AS``.
        year: Fiscal year label; the year starts the day after
            ``year-fiscal_year_end``.
        fiscal_year_end: ``MM-DD`` cutoff of the reporting year.
    """

    ticker: str
    year: int
    fiscal_year_end: str = DEFAULT_FISCAL_YEAR_END

    def __post_init__(self) -> None:
        parse_month_day(self.fiscal_year_end)

    def window(self) -> tuple[date, date]:
        """Return ``(start, end)``; events in ``(start, end]`` belong to the year."""
        month, day = parse_month_day(self.fiscal_year_end)
        return _clamped(self.year, month, day), _clamped(self.year + 1, month, day)


def parse_month_day(raw: str) -> tuple[int, int]:
    """Parse ``MM-DD``; raises ValueError on anything else."""
    parts = str(raw).strip().split("-")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid fiscal year end '{raw}', expected MM-DD")
    month, day = int(parts[0]), int(parts[1])
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid fiscal year end '{raw}': month out of range")
    # Validate against a leap year so 02-29 is accepted.
    if not 1 <= day <= calendar.monthrange(2000, month)[1]:
        raise ValueError(f"Invalid fiscal year end '{raw}': day out of range")
    return month, day


def _clamped(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))
