"""stockdb error types."""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Error classification codes."""

    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    PROVIDER_EXHAUSTED = "provider_exhausted"
    VALIDATION_FAILED = "validation_failed"
    NO_DATA = "no_data"
    MISSING_REPORT = "missing_report"
    INVALID_DIVIDEND = "invalid_dividend"
    DIVISION_BY_ZERO = "division_by_zero"
    CACHE_ERROR = "cache_error"


class StockDBError(Exception):
    """stockdb exception with error code and retryable flag.

    Attributes:
        message: Human-readable error description.
        code: Structured error code for programmatic handling.
        retryable: Whether the caller should retry with another credential.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable


class ProviderExhaustedError(StockDBError):
    """Every credential configured for a provider was exhausted or rejected."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"All {provider} API keys exhausted or failed",
            code=ErrorCode.PROVIDER_EXHAUSTED,
        )
        self.provider = provider
