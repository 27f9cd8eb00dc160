"""YahooFinanceProvider — raw/fmt unwrapping, statement merge and peer discovery."""

import httpx
import pytest

from stockmeter.core.domain_types import Period
from stockmeter.core.errors import ProviderError
from stockmeter.infrastructure.providers import YahooFinanceProvider

COMPANIES = {
    "AAPL": ("Apple Inc.", "Technology", "Consumer Electronics"),
    "SONY": ("Sony Group", "Technology", "Consumer Electronics"),
    "XOM": ("Exxon Mobil", "Energy", "Oil & Gas Integrated"),
}


def _num(value):
    return {"raw": value, "fmt": str(value)}


def _summary(ticker: str) -> dict:
    name, sector, industry = COMPANIES[ticker]
    return {
        "assetProfile": {"sector": sector, "industry": industry},
        "price": {"longName": name, "exchangeName": "NasdaqGS", "marketCap": _num(3e12)},
        "defaultKeyStatistics": {
            "sharesOutstanding": _num(15e9),
            "trailingPE": _num(25.0),
            "priceToBook": _num(40.0),
        },
        "summaryDetail": {"priceToSalesTrailing12Months": _num(7.5)},
        "incomeStatementHistory": {"incomeStatementHistory": [
            {"endDate": {"fmt": "2023-09-30"}, "totalRevenue": _num(383e9),
             "netIncome": _num(97e9), "dilutedEPS": _num(6.13)},
            {"endDate": {"fmt": "2024-09-28"}, "totalRevenue": _num(391e9),
             "netIncome": _num(94e9), "basicEPS": _num(6.11)},
        ]},
        "balanceSheetHistory": {"balanceSheetStatements": [
            {"endDate": {"fmt": "2024-09-28"}, "totalStockholderEquity": _num(57e9)},
        ]},
        "cashflowStatementHistory": {"cashflowStatements": [
            {"endDate": {"fmt": "2024-09-28"},
             "totalCashFromOperatingActivities": _num(118e9),
             "capitalExpenditures": _num(-9e9)},
        ]},
    }


def handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/v1/finance/search":
        return httpx.Response(200, json={"quotes": [
            {"symbol": symbol, "shortname": symbol}
            for symbol in ("AAPL", "SONY", "XOM", "GONE")
        ] + [{"symbol": "NONAME"}]})
    if path.startswith("/v8/finance/chart/"):
        return httpx.Response(200, json={"chart": {"result": [{"meta": {
            "regularMarketPrice": 227.5, "currency": "USD",
            "regularMarketTime": 1735689600,
        }}]}})
    ticker = path.rsplit("/", 1)[-1]
    if ticker not in COMPANIES:
        return httpx.Response(404, json={"quoteSummary": {"result": None}})
    return httpx.Response(200, json={"quoteSummary": {"result": [_summary(ticker)]}})


@pytest.fixture
async def provider():
    provider = YahooFinanceProvider(transport=httpx.MockTransport(handler))
    yield provider
    await provider.aclose()


async def test_sends_browser_user_agent():
    seen = []

    def recording(request):
        seen.append(request)
        return handler(request)

    provider = YahooFinanceProvider(transport=httpx.MockTransport(recording))
    await provider.get_stock_price("AAPL")
    assert seen[0].headers["User-Agent"].startswith("Mozilla/5.0")
    await provider.aclose()


async def test_search_requires_short_name(provider):
    results = await provider.search_stocks("apple")
    assert "NONAME" not in [r.ticker for r in results]
    assert results[0].type == "EQUITY"


async def test_profile_unwraps_raw_values(provider):
    profile = await provider.get_stock_profile("aapl")
    assert profile.ticker == "AAPL"
    assert profile.name == "Apple Inc."
    assert profile.market_cap == 3e12
    assert profile.shares_outstanding == 15e9


async def test_price_from_chart_meta(provider):
    price = await provider.get_stock_price("AAPL")
    assert price.price == 227.5
    assert price.timestamp.year == 2025


async def test_financials_merged_and_free_cash_flow_derived(provider):
    financials = await provider.get_financials("AAPL", Period.ANNUAL)

    latest, previous = financials.statements
    assert latest.date == "2024-09-28"
    assert latest.eps == 6.11
    assert latest.book_value == 57e9
    assert latest.free_cash_flow == 109e9
    assert latest.capex == 9e9
    assert previous.eps == 6.13
    assert previous.book_value == 0.0


async def test_unknown_ticker_is_provider_error(provider):
    with pytest.raises(ProviderError):
        await provider.get_stock_profile("GONE")


async def test_peers_filtered_by_industry_or_sector(provider):
    peers = await provider.get_industry_peers("AAPL")

    # AAPL itself excluded, XOM is another sector, GONE fails and is skipped
    assert [p.ticker for p in peers] == ["SONY"]
    peer = peers[0]
    assert peer.pe_ratio == 25.0
    assert peer.pb_ratio == 40.0
    assert peer.ps_ratio == 7.5


async def test_lowercase_ticker_requested_in_upper_case():
    seen = []

    def recording(request):
        seen.append(request.url.path)
        return handler(request)

    provider = YahooFinanceProvider(transport=httpx.MockTransport(recording))
    price = await provider.get_stock_price("aapl")
    financials = await provider.get_financials("sony", Period.ANNUAL)
    await provider.aclose()

    assert seen == ["/v8/finance/chart/AAPL", "/v10/finance/quoteSummary/SONY"]
    assert price.ticker == "AAPL"
    assert financials.ticker == "SONY"
