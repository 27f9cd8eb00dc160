"""Valuation Models — DCF, DDM, relative value and Graham Number as pure functions.

Invariants:
    - Inputs are statements ordered oldest → newest (FinancialStatements.chronological())
    - Each model is independent: one model's failure never affects another
    - DCF/relative value return None when inputs are insufficient
    - DDM/Graham return an applicable=False result when the formula does not apply
    - No IO, no logging — ValuationService logs around these calls

Design Decisions:
    - Constants are module-level so model details and tests read the same numbers
    - Per-share conversions refuse non-positive share counts instead of dividing by zero
"""

import math

from stockmeter.core.domain_types import (
    DCFAssumptions,
    DCFResult,
    DDMAssumptions,
    DDMResult,
    FinancialStatement,
    GrahamAssumptions,
    GrahamResult,
    IndustryPeer,
    RatioSet,
    RelativeValueResult,
    StockProfile,
)
from stockmeter.core.valuation_math import (
    calculate_cagr,
    calculate_median,
    determine_wacc,
)

# DCF
DCF_MIN_YEARS = 5
DCF_PROJECTION_YEARS = 10
DCF_TERMINAL_GROWTH_RATE = 0.025
DCF_MIN_GROWTH_RATE = -0.5
DCF_MAX_GROWTH_RATE = 1.0

# DDM
DDM_MIN_YEARS = 3
DDM_DISCOUNT_RATE = 0.10
DDM_MAX_GROWTH_RATE = 0.5

# Relative value
RELATIVE_MIN_PEERS = 10

# Graham
GRAHAM_MULTIPLIER = 22.5


def calculate_dcf(
    statements: list[FinancialStatement], profile: StockProfile,
) -> DCFResult | None:
    """Ten-year FCF projection from revenue CAGR and average FCF margin."""
    if len(statements) < DCF_MIN_YEARS:
        return None
    if profile.shares_outstanding <= 0:
        return None

    window = statements[-DCF_MIN_YEARS:]
    growth = calculate_cagr([s.revenue for s in window])
    if growth is None or not (DCF_MIN_GROWTH_RATE <= growth <= DCF_MAX_GROWTH_RATE):
        return None

    margins = [
        s.free_cash_flow / s.revenue if s.revenue > 0 else 0.0
        for s in window
    ]
    margins = [m for m in margins if math.isfinite(m)]
    if not margins:
        return None
    fcf_margin = sum(margins) / len(margins)

    wacc = determine_wacc(profile.sector)
    latest_revenue = statements[-1].revenue
    projected = [
        latest_revenue * (1 + growth) ** year * fcf_margin
        for year in range(1, DCF_PROJECTION_YEARS + 1)
    ]

    tg = DCF_TERMINAL_GROWTH_RATE
    terminal_value = projected[-1] * (1 + tg) / (wacc - tg)
    present_value = sum(
        cf / (1 + wacc) ** year for year, cf in enumerate(projected, start=1)
    )
    present_value += terminal_value / (1 + wacc) ** DCF_PROJECTION_YEARS

    return DCFResult(
        fair_value=present_value / profile.shares_outstanding,
        assumptions=DCFAssumptions(
            revenue_growth_rate=growth,
            wacc=wacc,
            terminal_growth_rate=tg,
            projection_years=DCF_PROJECTION_YEARS,
            fcf_margin=fcf_margin,
        ),
        projected_cash_flows=projected,
    )


def _ddm_not_applicable(growth: float = 0.0, rate: float = 0.0) -> DDMResult:
    return DDMResult(
        fair_value=None,
        assumptions=DDMAssumptions(dividend_growth_rate=growth, discount_rate=rate),
        applicable=False,
    )


def calculate_ddm(statements: list[FinancialStatement]) -> DDMResult:
    """Gordon Growth Model over the last three years of dividends."""
    recent = statements[-DDM_MIN_YEARS:]
    if len(recent) < DDM_MIN_YEARS:
        return _ddm_not_applicable()

    dividends = [s.dividend_per_share for s in recent]
    if not all(d > 0 for d in dividends):
        return _ddm_not_applicable()

    growth = calculate_cagr(dividends)
    if growth is None or not (0 <= growth <= DDM_MAX_GROWTH_RATE):
        return _ddm_not_applicable()

    rate = DDM_DISCOUNT_RATE
    if rate <= growth:
        return _ddm_not_applicable(growth, rate)

    next_dividend = dividends[-1] * (1 + growth)
    return DDMResult(
        fair_value=next_dividend / (rate - growth),
        assumptions=DDMAssumptions(dividend_growth_rate=growth, discount_rate=rate),
        applicable=True,
    )


def _positive_ratios(values: list[float | None]) -> list[float]:
    return [v for v in values if v is not None and math.isfinite(v) and v > 0]


def _median_or_none(values: list[float]) -> float | None:
    return calculate_median(values) if values else None


def calculate_relative_value(
    statements: list[FinancialStatement],
    peers: list[IndustryPeer],
    profile: StockProfile,
) -> RelativeValueResult | None:
    """Apply industry median P/E, P/B and P/S to the latest statement."""
    if len(peers) < RELATIVE_MIN_PEERS or not statements:
        return None

    latest = statements[-1]
    shares = profile.shares_outstanding
    market_cap = profile.market_cap

    company = RatioSet(
        pe=(
            market_cap / (latest.eps * shares)
            if latest.eps > 0 and shares > 0 else None
        ),
        pb=market_cap / latest.book_value if latest.book_value > 0 else None,
        ps=market_cap / latest.revenue if latest.revenue > 0 else None,
    )
    medians = RatioSet(
        pe=_median_or_none(_positive_ratios([p.pe_ratio for p in peers])),
        pb=_median_or_none(_positive_ratios([p.pb_ratio for p in peers])),
        ps=_median_or_none(_positive_ratios([p.ps_ratio for p in peers])),
    )

    pe_value = (
        medians.pe * latest.eps
        if medians.pe and latest.eps > 0 else None
    )
    pb_value = (
        medians.pb * latest.book_value / shares
        if medians.pb and latest.book_value > 0 and shares > 0 else None
    )
    ps_value = (
        medians.ps * latest.revenue / shares
        if medians.ps and latest.revenue > 0 and shares > 0 else None
    )

    return RelativeValueResult(
        pe_ratio_fair_value=pe_value,
        pb_ratio_fair_value=pb_value,
        ps_ratio_fair_value=ps_value,
        company_metrics=company,
        industry_medians=medians,
    )


def calculate_graham_number(
    statements: list[FinancialStatement], profile: StockProfile,
) -> GrahamResult | None:
    """sqrt(22.5 × EPS × BVPS) from the latest statement."""
    if not statements:
        return None

    latest = statements[-1]
    eps = latest.eps
    bvps = (
        latest.book_value / profile.shares_outstanding
        if profile.shares_outstanding > 0 else 0.0
    )
    assumptions = GrahamAssumptions(eps=eps, book_value_per_share=bvps)

    if eps <= 0 or bvps <= 0:
        return GrahamResult(fair_value=None, assumptions=assumptions, applicable=False)

    return GrahamResult(
        fair_value=math.sqrt(GRAHAM_MULTIPLIER * eps * bvps),
        assumptions=assumptions,
        applicable=True,
    )
