"""Valuation Math — small statistics and lookups shared by the valuation models.

Invariants:
    - Pure functions, no IO, no logging
    - calculate_cagr returns None when growth is undefined (too few points, non-positive ends)
    - determine_valuation_status ignores missing and non-positive fair values
"""

import math

from stockmeter.core.domain_types import ValuationStatus

# Sector cost of capital, 8–12% band
SECTOR_WACC: dict[str, float] = {
    "Technology": 0.10,
    "Healthcare": 0.09,
    "Financial Services": 0.08,
    "Consumer Cyclical": 0.11,
    "Consumer Defensive": 0.08,
    "Industrials": 0.10,
    "Energy": 0.11,
    "Utilities": 0.08,
    "Real Estate": 0.09,
    "Basic Materials": 0.11,
    "Communication Services": 0.10,
}
DEFAULT_WACC = 0.10

# Price must clear the average fair value by this margin to leave "fairly priced"
VALUATION_THRESHOLD = 0.10


def calculate_cagr(values: list[float]) -> float | None:
    """Compound annual growth rate between the first and last value."""
    if len(values) < 2:
        return None
    start, end = values[0], values[-1]
    if start <= 0 or end <= 0:
        return None
    years = len(values) - 1
    return (end / start) ** (1 / years) - 1


def calculate_median(values: list[float]) -> float:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def determine_wacc(sector: str) -> float:
    return SECTOR_WACC.get(sector, DEFAULT_WACC)


def is_finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def average_fair_value(fair_values: list[float | None]) -> float | None:
    """Mean of the usable fair values (missing, non-finite and non-positive dropped)."""
    usable = [v for v in fair_values if is_finite(v) and v > 0]
    if not usable:
        return None
    return sum(usable) / len(usable)


def determine_valuation_status(
    current_price: float, fair_values: list[float | None],
) -> ValuationStatus:
    """Compare price against the average fair value with a 10% band."""
    average = average_fair_value(fair_values)
    if average is None:
        return ValuationStatus.FAIRLY_PRICED
    if average > current_price * (1 + VALUATION_THRESHOLD):
        return ValuationStatus.UNDERVALUED
    if current_price > average * (1 + VALUATION_THRESHOLD):
        return ValuationStatus.OVERVALUED
    return ValuationStatus.FAIRLY_PRICED
