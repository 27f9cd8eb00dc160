"""Model Details — explains how each fair value was reached.

Invariants:
    - Pure transform of FairValueResult, no recalculation
    - A model that was not computed maps to None
    - Not-applicable DDM/Graham results carry a single explanatory step
"""

from stockmeter.core.domain_types import FairValueResult

_DCF_STEPS = [
    "Calculate historical revenue CAGR from 5-year data",
    "Calculate historical FCF margin average",
    "Project 10-year revenue using growth rate",
    "Project FCF using revenue × FCF margin",
    "Determine WACC based on sector and risk profile",
    "Calculate terminal value using perpetual growth rate",
    "Discount all cash flows to present value",
    "Divide by shares outstanding for per-share value",
]

_DDM_STEPS = [
    "Check if stock pays dividends (last 3 years)",
    "Calculate dividend CAGR from historical data",
    "Apply Gordon Growth Model: D1 / (r - g)",
    "Use required return between 8-12%",
]

_RELATIVE_STEPS = [
    "Fetch industry peer data (minimum 10 companies)",
    "Calculate median P/E, P/B, P/S ratios",
    "Apply industry medians to company metrics",
    "Fair Value = Company Metric × Industry Median",
]

_GRAHAM_STEPS = [
    "Extract EPS and book value per share from financials",
    "Apply Graham formula: √(22.5 × EPS × BVPS)",
    "Return fair value estimate",
]


def build_model_details(result: FairValueResult) -> dict:
    data = result.to_dict()
    details: dict = {
        "ticker": result.ticker,
        "current_price": result.current_price,
        "calculated_at": data["calculated_at"],
        "valuation_status": data["valuation_status"],
        "dcf": None,
        "ddm": None,
        "relative_value": None,
        "graham": None,
    }

    if result.dcf:
        details["dcf"] = {
            **data["dcf"],
            "calculation_steps": {
                "description": "Discounted Cash Flow (DCF) Model",
                "methodology": "Projects future free cash flows and discounts them to present value",
                "steps": list(_DCF_STEPS),
            },
        }

    if result.ddm:
        details["ddm"] = {
            **data["ddm"],
            "calculation_steps": {
                "description": "Dividend Discount Model (DDM)",
                "methodology": "Values stock based on present value of future dividend payments",
                "steps": (
                    list(_DDM_STEPS) if result.ddm.applicable
                    else ["Stock does not pay dividends - DDM not applicable"]
                ),
            },
        }

    if result.relative_value:
        rel = data["relative_value"]
        details["relative_value"] = {
            "fair_values": {
                "pe_ratio": rel["pe_ratio_fair_value"],
                "pb_ratio": rel["pb_ratio_fair_value"],
                "ps_ratio": rel["ps_ratio_fair_value"],
            },
            "company_metrics": rel["company_metrics"],
            "industry_medians": rel["industry_medians"],
            "calculation_steps": {
                "description": "Relative Valuation (P/E, P/B, P/S Ratios)",
                "methodology": "Compares company valuation multiples to industry peers",
                "steps": list(_RELATIVE_STEPS),
            },
        }

    if result.graham:
        details["graham"] = {
            **data["graham"],
            "calculation_steps": {
                "description": "Graham Number",
                "methodology": "Conservative value metric based on earnings and book value",
                "steps": (
                    list(_GRAHAM_STEPS) if result.graham.applicable
                    else ["EPS or book value is negative - Graham Number not applicable"]
                ),
            },
        }

    return details
