"""Dividend event data model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class DividendPeriod(Enum):
    """Reporting period label attached to a dividend by the provider."""

    ANNUAL = "Annual"
    FINAL = "Final"
    INTERIM = "Interim"
    QUARTERLY = "Quarterly"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: object) -> DividendPeriod | None:
        """Map a provider period string to a member; blank means no period.

        Labels must match exactly (``"annual"`` is ``UNKNOWN``).
        """
        if raw is None:
            return None
        text = str(raw)
        if not text.strip():
            return None
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class DividendEvent:
    """Dividend distribution event.

    Attributes:
        value: Dividend amount per share, in the listing currency.
        date: Ex-dividend date.
        period: Reporting period label, or None when the provider sent none.
        currency: Currency code, when the provider reports one.
    """

    value: float
    date: date
    period: DividendPeriod | None = None
    currency: str | None = None
