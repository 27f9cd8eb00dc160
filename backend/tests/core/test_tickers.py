"""Tests for ticker normalization."""

import pytest

from stockmeter.core.errors import TickerValidationError
from stockmeter.core.tickers import normalize_ticker, normalize_tickers


@pytest.mark.parametrize("raw, expected", [
    ("aapl", "AAPL"),
    (" msft ", "MSFT"),
    ("brk.b", "BRK.B"),
    ("^gspc", "^GSPC"),
    ("eurusd=x", "EURUSD=X"),
    ("bbca.jk", "BBCA.JK"),
])
def test_valid_tickers_are_upper_cased(raw, expected):
    assert normalize_ticker(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "TOOLONGTICKER", "AA PL", "AAPL$", "../etc"])
def test_invalid_tickers_raise(raw):
    with pytest.raises(TickerValidationError) as exc:
        normalize_ticker(raw)
    assert exc.value.http_status == 400
    assert exc.value.code == "VALIDATION_ERROR"


def test_normalize_tickers_dedupes_in_order():
    assert normalize_tickers(["aapl", "MSFT", "AAPL", " msft", "goog"]) == [
        "AAPL", "MSFT", "GOOG",
    ]
