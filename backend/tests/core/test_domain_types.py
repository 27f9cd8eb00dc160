"""Tests for domain types — ordering helpers, fair value extraction, cache round-trip."""

from datetime import datetime, timezone

from stockmeter.core.domain_types import (
    STATUS_COLOR_CODES,
    DDMAssumptions,
    DDMResult,
    FairValueResult,
    FinancialStatement,
    FinancialStatements,
    GrahamAssumptions,
    GrahamResult,
    Period,
    RatioSet,
    RelativeValueResult,
    StockPrice,
    ValuationStatus,
)


def _result() -> FairValueResult:
    return FairValueResult(
        ticker="AAPL",
        current_price=150.0,
        dcf=None,
        ddm=DDMResult(
            fair_value=None,
            assumptions=DDMAssumptions(dividend_growth_rate=0.0, discount_rate=0.0),
            applicable=False,
        ),
        relative_value=RelativeValueResult(
            pe_ratio_fair_value=160.0,
            pb_ratio_fair_value=None,
            ps_ratio_fair_value=140.0,
            company_metrics=RatioSet(pe=25.0),
            industry_medians=RatioSet(pe=26.0, ps=7.0),
        ),
        graham=GrahamResult(
            fair_value=90.0,
            assumptions=GrahamAssumptions(eps=6.0, book_value_per_share=60.0),
            applicable=True,
        ),
        valuation_status=ValuationStatus.FAIRLY_PRICED,
        calculated_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
    )


def test_chronological_sorts_oldest_first():
    fs = FinancialStatements(
        ticker="AAPL",
        period=Period.ANNUAL,
        statements=[
            FinancialStatement(date="2024-09-30"),
            FinancialStatement(date="2022-09-30"),
            FinancialStatement(date="2023-09-30"),
        ],
    )
    assert [s.date for s in fs.chronological()] == [
        "2022-09-30", "2023-09-30", "2024-09-30",
    ]
    # original order untouched
    assert fs.statements[0].date == "2024-09-30"


def test_fair_values_keyed_by_model():
    assert _result().fair_values() == {
        "dcf": None,
        "ddm": None,
        "pe_ratio": 160.0,
        "pb_ratio": None,
        "ps_ratio": 140.0,
        "graham": 90.0,
    }


def test_fair_value_result_survives_cache_round_trip():
    original = _result()
    restored = FairValueResult.from_dict(original.to_dict())
    assert restored == original
    assert restored.calculated_at.tzinfo is not None


def test_stock_price_serializes_timestamp_as_iso():
    price = StockPrice(
        ticker="AAPL", price=1.0, currency="USD",
        timestamp=datetime(2026, 1, 2, tzinfo=timezone.utc),
    )
    assert price.to_dict()["timestamp"] == "2026-01-02T00:00:00+00:00"
    assert StockPrice.from_dict(price.to_dict()) == price


def test_status_values_and_colors():
    assert ValuationStatus.FAIRLY_PRICED.value == "fairly_priced"
    assert STATUS_COLOR_CODES[ValuationStatus.UNDERVALUED] == "soft-green"
    assert STATUS_COLOR_CODES[ValuationStatus.FAIRLY_PRICED] == "white"
    assert STATUS_COLOR_CODES[ValuationStatus.OVERVALUED] == "soft-red"
