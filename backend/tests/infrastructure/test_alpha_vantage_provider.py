"""AlphaVantageProvider — function-keyed /query endpoint and throttle payloads."""

import httpx
import pytest

from stockmeter.core.domain_types import Period
from stockmeter.core.errors import ProviderError
from stockmeter.infrastructure.providers import AlphaVantageProvider

OVERVIEWS = {
    "IBM": {"Symbol": "IBM", "Name": "IBM", "Sector": "TECHNOLOGY",
            "Industry": "COMPUTER & OFFICE EQUIPMENT", "MarketCapitalization": "2e11",
            "SharesOutstanding": "9.2e8"},
    "HPQ": {"Symbol": "HPQ", "Name": "HP Inc", "Sector": "TECHNOLOGY",
            "Industry": "COMPUTER & OFFICE EQUIPMENT", "PERatio": "12.5",
            "PriceToBookRatio": "None", "PriceToSalesRatioTTM": "0.6"},
    "JPM": {"Symbol": "JPM", "Name": "JPMorgan", "Sector": "FINANCE",
            "Industry": "BANKS"},
}

FINANCIALS = {
    "INCOME_STATEMENT": {"annualReports": [
        {"fiscalDateEnding": "2023-12-31", "totalRevenue": "61860000000",
         "netIncome": "7502000000"},
        {"fiscalDateEnding": "2024-12-31", "totalRevenue": "62753000000",
         "netIncome": "6023000000"},
    ]},
    "BALANCE_SHEET": {"annualReports": [
        {"fiscalDateEnding": "2024-12-31", "commonStockSharesOutstanding": "1000000000",
         "totalShareholderEquity": "27300000000"},
        {"fiscalDateEnding": "2023-12-31", "commonStockSharesOutstanding": "1000000000"},
    ]},
    "CASH_FLOW": {"annualReports": [
        {"fiscalDateEnding": "2024-12-31", "operatingCashflow": "13445000000",
         "capitalExpenditures": "1685000000", "dividendPayout": "6147000000"},
    ]},
}


def _provider(override=None, seen=None) -> AlphaVantageProvider:
    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if seen is not None:
            seen.append(params["function"])
        if override is not None:
            return httpx.Response(200, json=override)
        function = params["function"]
        if function == "OVERVIEW":
            return httpx.Response(200, json=OVERVIEWS.get(params["symbol"], {}))
        if function == "SYMBOL_SEARCH":
            return httpx.Response(200, json={"bestMatches": [
                {"1. symbol": s, "2. name": s} for s in ("IBM", "HPQ", "JPM", "NONE")
            ]})
        if function == "GLOBAL_QUOTE":
            return httpx.Response(200, json={"Global Quote": {
                "01. symbol": "IBM", "05. price": "221.9000",
                "07. latest trading day": "2025-01-03",
            }})
        return httpx.Response(200, json=FINANCIALS[function])
    return AlphaVantageProvider(api_key="k", transport=httpx.MockTransport(handler))


async def test_profile_from_overview():
    provider = _provider()
    profile = await provider.get_stock_profile("IBM")
    assert profile.sector == "TECHNOLOGY"
    assert profile.shares_outstanding == 9.2e8
    await provider.aclose()


async def test_price_from_global_quote():
    provider = _provider()
    price = await provider.get_stock_price("IBM")
    assert price.price == pytest.approx(221.9)
    assert price.timestamp.day == 3
    await provider.aclose()


async def test_financials_are_fetched_sequentially_and_derived():
    seen = []
    provider = _provider(seen=seen)

    financials = await provider.get_financials("IBM", Period.ANNUAL)

    assert seen == ["INCOME_STATEMENT", "BALANCE_SHEET", "CASH_FLOW"]
    latest, previous = financials.statements
    assert latest.date == "2024-12-31"
    assert latest.eps == pytest.approx(6.023)
    assert latest.free_cash_flow == pytest.approx(11.76e9)
    assert latest.dividend_per_share == pytest.approx(6.147)
    assert previous.dividend_per_share == 0.0
    await provider.aclose()


@pytest.mark.parametrize("key", ["Note", "Information"])
async def test_throttle_message_is_rate_limit(key):
    provider = _provider(override={key: "Thank you for using Alpha Vantage! ..."})
    with pytest.raises(ProviderError) as exc:
        await provider.get_stock_price("IBM")
    assert exc.value.rate_limited is True
    await provider.aclose()


async def test_error_message_payload():
    provider = _provider(override={"Error Message": "Invalid API call."})
    with pytest.raises(ProviderError, match="Invalid API call"):
        await provider.get_stock_profile("IBM")
    await provider.aclose()


async def test_empty_quote_is_an_error():
    provider = _provider(override={"Global Quote": {}})
    with pytest.raises(ProviderError, match="No price data found"):
        await provider.get_stock_price("IBM")
    await provider.aclose()


async def test_peers_keep_same_sector_and_skip_missing():
    provider = _provider()

    peers = await provider.get_industry_peers("IBM")

    assert [p.ticker for p in peers] == ["HPQ"]
    assert peers[0].pe_ratio == 12.5
    assert peers[0].pb_ratio is None
    assert peers[0].ps_ratio == 0.6
    await provider.aclose()
