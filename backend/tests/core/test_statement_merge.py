"""Tests for statement merging and lenient numeric parsing."""

from stockmeter.core.domain_types import FinancialStatement
from stockmeter.core.statement_merge import (
    merge_statements_by_date,
    sort_newest_first,
    to_float,
    to_ratio,
)


def _date(row):
    return row.get("date")


def test_merge_groups_three_sources_by_date():
    merged = merge_statements_by_date(
        [{"date": "2024-12-31", "revenue": 1}, {"date": "2023-12-31", "revenue": 2}],
        [{"date": "2024-12-31", "assets": 3}],
        [{"date": "2023-12-31", "fcf": 4}],
        _date,
    )
    assert list(merged) == ["2024-12-31", "2023-12-31"]
    assert merged["2024-12-31"].income["revenue"] == 1
    assert merged["2024-12-31"].balance["assets"] == 3
    assert merged["2024-12-31"].cashflow == {}
    assert merged["2023-12-31"].cashflow["fcf"] == 4
    assert merged["2023-12-31"].balance == {}


def test_merge_keeps_dates_present_in_one_source_only():
    merged = merge_statements_by_date([], [], [{"date": "2022-12-31"}], _date)
    assert list(merged) == ["2022-12-31"]
    assert merged["2022-12-31"].income == {}


def test_merge_drops_rows_without_date():
    merged = merge_statements_by_date([{"revenue": 1}, {"date": ""}], [], [], _date)
    assert merged == {}


def test_sort_newest_first():
    statements = [
        FinancialStatement(date="2022-12-31"),
        FinancialStatement(date="2024-12-31"),
        FinancialStatement(date="2023-12-31"),
    ]
    assert [s.date for s in sort_newest_first(statements)] == [
        "2024-12-31", "2023-12-31", "2022-12-31",
    ]


def test_to_float_is_lenient():
    assert to_float("1.5e9") == 1.5e9
    assert to_float(42) == 42.0
    assert to_float("None") == 0.0
    assert to_float("") == 0.0
    assert to_float(None, default=-1.0) == -1.0
    assert to_float(float("nan")) == 0.0


def test_to_ratio_treats_zero_and_garbage_as_missing():
    assert to_ratio("25.3") == 25.3
    assert to_ratio("0") is None
    assert to_ratio("-") is None
    assert to_ratio(None) is None
