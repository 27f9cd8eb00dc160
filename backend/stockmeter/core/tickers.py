"""Ticker Normalization — validates and upper-cases user-supplied symbols.

Invariants:
    - 1–10 characters after stripping
    - Letters, digits and . - ^ = only (covers BRK.B, ^GSPC, EURUSD=X, BBCA.JK)
    - Output is always upper-case
"""

import re

from stockmeter.core.errors import TickerValidationError

_TICKER_PATTERN = re.compile(r"^[A-Za-z0-9.\-^=]{1,10}$")


def normalize_ticker(raw: str) -> str:
    ticker = (raw or "").strip()
    if not _TICKER_PATTERN.match(ticker):
        raise TickerValidationError(raw)
    return ticker.upper()


def normalize_tickers(raw: list[str]) -> list[str]:
    """Normalize and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for item in raw:
        seen.setdefault(normalize_ticker(item), None)
    return list(seen)
