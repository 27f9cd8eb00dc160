"""Statement Merge — joins income, balance sheet and cash flow rows by reporting date.

Invariants:
    - Output preserves first-seen date order; callers sort afterwards
    - A date present in only one source still yields a row (missing parts are {})
    - Rows without a date key are dropped
    - Pure: no IO, no provider-specific field names

Design Decisions:
    - date_of callable per provider: FMP uses `date`, Alpha Vantage `fiscalDateEnding`,
      Yahoo `endDate.fmt` — the merge stays agnostic
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from stockmeter.core.domain_types import FinancialStatement


@dataclass
class StatementParts:
    """The three raw statement payloads for one reporting date."""
    income: dict = field(default_factory=dict)
    balance: dict = field(default_factory=dict)
    cashflow: dict = field(default_factory=dict)


def merge_statements_by_date(
    income: Iterable[dict],
    balance: Iterable[dict],
    cashflow: Iterable[dict],
    date_of: Callable[[dict], str | None],
) -> dict[str, StatementParts]:
    merged: dict[str, StatementParts] = {}
    for attr, rows in (("income", income), ("balance", balance), ("cashflow", cashflow)):
        for row in rows:
            date = date_of(row)
            if not date:
                continue
            parts = merged.setdefault(date, StatementParts())
            setattr(parts, attr, row)
    return merged


def sort_newest_first(statements: list[FinancialStatement]) -> list[FinancialStatement]:
    return sorted(statements, key=lambda s: s.date, reverse=True)


def to_float(value, default: float = 0.0) -> float:
    """Lenient numeric parse for upstream payloads ("None", "", None, "1.5e9")."""
    if value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if result != result:  # NaN
        return default
    return result


def to_ratio(value) -> float | None:
    """Parse a valuation ratio; zero/missing/unparseable → None."""
    result = to_float(value)
    return result or None
