"""Error Hierarchy — typed, categorized exceptions for all Stockmeter failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are caller mistakes; infrastructure errors (500-level) are upstream failures
    - to_response() produces the REST error envelope
    - No upstream payloads or stack traces in user-facing messages

Design Decisions:
    - Single hierarchy with StockmeterError base: FastAPI global handler catches all
    - ErrorContext as dataclass: carries ticker/provider for logs without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_API = "external_api"
    CACHE = "cache"
    DATABASE = "database"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ticker: str | None = None
    provider: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class StockmeterError(Exception):
    """Base exception for all Stockmeter errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "ticker": self.context.ticker,
                    "provider": self.context.provider,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class TickerValidationError(StockmeterError):
    """Ticker symbol is empty or malformed."""
    def __init__(self, ticker: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid ticker symbol: '{ticker}'",
            "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.ticker = ticker


class ResourceNotFoundError(StockmeterError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class ExchangeRateNotFoundError(StockmeterError):
    """No exchange rate known for a currency code."""
    def __init__(self, currency: str, context: ErrorContext | None = None):
        super().__init__(
            f"Exchange rate not found for {currency}",
            "EXCHANGE_RATE_NOT_FOUND", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.currency = currency


class ComparisonLimitError(StockmeterError):
    """Batch comparison requested more tickers than allowed."""
    def __init__(self, count: int, limit: int, context: ErrorContext | None = None):
        super().__init__(
            f"Maximum {limit} stocks allowed for comparison (got {count})",
            "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.count = count
        self.limit = limit


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ProviderError(StockmeterError):
    """A single financial data provider call failed."""
    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        rate_limited: bool = False,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.provider = provider
        super().__init__(
            f"{provider}: {message}",
            "PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, ctx, 502,
        )
        self.detail = message
        self.provider = provider
        self.status_code = status_code
        self.rate_limited = rate_limited


class AllProvidersFailedError(StockmeterError):
    """Every configured provider failed for one operation."""
    def __init__(
        self,
        operation: str,
        failures: list[tuple[str, str]],
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.operation = operation
        detail = "; ".join(f"{name}: {msg}" for name, msg in failures)
        super().__init__(
            f"All financial data providers failed. Errors: {detail}",
            "ALL_PROVIDERS_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.failures = failures


class ComparisonTimeoutError(StockmeterError):
    """Batch comparison exceeded its time budget."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Comparison calculation exceeded {timeout_seconds:g} second limit",
            "TIMEOUT_ERROR", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context, 504,
        )
        self.timeout_seconds = timeout_seconds


class DatabaseError(StockmeterError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
