"""Stock Routes — search, profile, financials, fair value, model details and comparison.

Invariants:
    - Path tickers are validated and upper-cased before reaching services
    - Fair value responses carry color_code derived from valuation_status
    - Provider exhaustion surfaces as 503 ALL_PROVIDERS_FAILED via the global handler

Design Decisions:
    - Thin handlers: caching and failover live in StockDataService/ValuationService
"""

import logging

from fastapi import APIRouter, Depends, Query

from stockmeter.api.dependencies import get_stock_data_service, get_valuation_service
from stockmeter.core.domain_types import STATUS_COLOR_CODES, Period
from stockmeter.core.tickers import normalize_ticker
from stockmeter.schemas.stocks import CompareRequest
from stockmeter.services.stock_data_service import StockDataService
from stockmeter.services.valuation_service import ValuationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/stocks", tags=["stocks"])


@router.get("/search")
async def search_stocks(
    q: str = Query(min_length=2, max_length=50),
    stocks: StockDataService = Depends(get_stock_data_service),
):
    results = await stocks.search(q)
    return {"results": [r.to_dict() for r in results], "count": len(results)}


@router.post("/compare")
async def compare_stocks(
    body: CompareRequest,
    valuation: ValuationService = Depends(get_valuation_service),
):
    return await valuation.compare(body.tickers)


@router.get("/{ticker}")
async def get_stock(
    ticker: str, stocks: StockDataService = Depends(get_stock_data_service),
):
    return await stocks.get_stock_detail(normalize_ticker(ticker))


@router.get("/{ticker}/financials")
async def get_financials(
    ticker: str,
    period: Period = Period.ANNUAL,
    stocks: StockDataService = Depends(get_stock_data_service),
):
    financials = await stocks.get_financials(normalize_ticker(ticker), period)
    return financials.to_dict()


@router.get("/{ticker}/fairvalue")
async def get_fair_value(
    ticker: str, valuation: ValuationService = Depends(get_valuation_service),
):
    result = await valuation.calculate_all_models(normalize_ticker(ticker))
    return {
        **result.to_dict(),
        "fair_values": result.fair_values(),
        "color_code": STATUS_COLOR_CODES[result.valuation_status],
    }


@router.get("/{ticker}/modeldetails")
async def get_model_details(
    ticker: str, valuation: ValuationService = Depends(get_valuation_service),
):
    return await valuation.get_model_details(normalize_ticker(ticker))
