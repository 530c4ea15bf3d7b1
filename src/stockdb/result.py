"""Tagged success/failure results returned by the public entry points.

Business-level gaps (no dividend data, a missing annual report) are not
exceptional: they come back as ``Err`` values so that a caller rendering a
table of tickers can show the reason next to the ticker instead of
aborting the whole run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from stockdb.errors import ErrorCode, StockDBError


@dataclass(frozen=True)
class Ok:
    """Successful numeric result."""

    value: float

    @property
    def is_ok(self) -> bool:
        return True

    def to_cell(self) -> float:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed result with a structured code and a human-readable reason.

    Attributes:
        code: Error classification.
        detail: Reason without the ``Error:`` prefix.
    """

    code: ErrorCode
    detail: str

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return f"Error: {self.detail}"

    def to_cell(self) -> str:
        return self.message

    @classmethod
    def from_exception(cls, exc: Exception) -> Err:
        if isinstance(exc, StockDBError):
            return cls(exc.code, str(exc))
        return cls(ErrorCode.PROVIDER_ERROR, str(exc) or type(exc).__name__)


MetricResult = Union[Ok, Err]
