"""Tests for build_model_details — per-model breakdown with calculation steps."""

from stockmeter.core.domain_types import (
    DCFAssumptions,
    DCFResult,
    DDMAssumptions,
    DDMResult,
    FairValueResult,
    GrahamAssumptions,
    GrahamResult,
    RatioSet,
    RelativeValueResult,
    ValuationStatus,
)
from stockmeter.core.model_details import build_model_details


def _result(**overrides) -> FairValueResult:
    fields = dict(
        ticker="MSFT",
        current_price=400.0,
        dcf=DCFResult(
            fair_value=420.0,
            assumptions=DCFAssumptions(0.1, 0.1, 0.025, 10, 0.3),
            projected_cash_flows=[1.0] * 10,
        ),
        ddm=DDMResult(
            fair_value=300.0,
            assumptions=DDMAssumptions(0.05, 0.10),
            applicable=True,
        ),
        relative_value=RelativeValueResult(
            pe_ratio_fair_value=410.0,
            pb_ratio_fair_value=380.0,
            ps_ratio_fair_value=None,
            company_metrics=RatioSet(pe=35.0, pb=12.0),
            industry_medians=RatioSet(pe=36.0, pb=11.0),
        ),
        graham=GrahamResult(
            fair_value=None,
            assumptions=GrahamAssumptions(eps=-1.0, book_value_per_share=30.0),
            applicable=False,
        ),
        valuation_status=ValuationStatus.FAIRLY_PRICED,
    )
    fields.update(overrides)
    return FairValueResult(**fields)


def test_dcf_details_carry_assumptions_and_steps():
    details = build_model_details(_result())
    dcf = details["dcf"]
    assert dcf["fair_value"] == 420.0
    assert dcf["assumptions"]["wacc"] == 0.1
    assert dcf["calculation_steps"]["description"] == "Discounted Cash Flow (DCF) Model"
    assert len(dcf["calculation_steps"]["steps"]) == 8


def test_relative_details_split_fair_values():
    rel = build_model_details(_result())["relative_value"]
    assert rel["fair_values"] == {"pe_ratio": 410.0, "pb_ratio": 380.0, "ps_ratio": None}
    assert rel["company_metrics"]["pe"] == 35.0
    assert rel["industry_medians"]["pb"] == 11.0


def test_not_applicable_models_get_single_explanatory_step():
    details = build_model_details(_result(
        ddm=DDMResult(None, DDMAssumptions(0.0, 0.0), applicable=False),
    ))
    assert details["ddm"]["calculation_steps"]["steps"] == [
        "Stock does not pay dividends - DDM not applicable",
    ]
    assert len(details["graham"]["calculation_steps"]["steps"]) == 1


def test_missing_models_map_to_none():
    details = build_model_details(_result(dcf=None, relative_value=None))
    assert details["dcf"] is None
    assert details["relative_value"] is None
    assert details["ticker"] == "MSFT"
    assert details["valuation_status"] == "fairly_priced"
