"""Stock routes — search, detail, financials, fair value and comparison over HTTP."""

from stockmeter.core.domain_types import StockSearchResult
from tests.fakes import provider_error


async def test_search(client, api_providers):
    api_providers[0].search_results = [
        StockSearchResult("AAPL", "Apple Inc.", "NASDAQ", "stock"),
        StockSearchResult("APLE", "Apple Hospitality", "NYSE", "stock"),
    ]

    res = await client.get("/api/v1/stocks/search", params={"q": "apple"})

    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 2
    assert body["results"][0] == {
        "ticker": "AAPL", "name": "Apple Inc.", "exchange": "NASDAQ", "type": "stock",
    }


async def test_search_query_too_short(client):
    res = await client.get("/api/v1/stocks/search", params={"q": "a"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_stock_detail(client):
    res = await client.get("/api/v1/stocks/aapl")
    assert res.status_code == 200
    body = res.json()
    assert body["ticker"] == "AAPL"
    assert body["current_price"] == 100.0


async def test_invalid_ticker(client):
    res = await client.get("/api/v1/stocks/TOOLONGTICKER1")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_financials_period(client):
    res = await client.get("/api/v1/stocks/AAPL/financials", params={"period": "quarterly"})
    assert res.status_code == 200
    body = res.json()
    assert body["period"] == "quarterly"
    assert len(body["statements"]) == 5


async def test_financials_bad_period(client):
    res = await client.get("/api/v1/stocks/AAPL/financials", params={"period": "weekly"})
    assert res.status_code == 400


async def test_fair_value(client):
    res = await client.get("/api/v1/stocks/AAPL/fairvalue")

    assert res.status_code == 200
    body = res.json()
    assert body["ticker"] == "AAPL"
    assert body["valuation_status"] == "overvalued"
    assert body["color_code"] == "soft-red"
    assert set(body["fair_values"]) == {
        "dcf", "ddm", "pe_ratio", "pb_ratio", "ps_ratio", "graham",
    }


async def test_model_details(client):
    res = await client.get("/api/v1/stocks/AAPL/modeldetails")
    assert res.status_code == 200
    assert res.json()["graham"]["calculation_steps"]["steps"]


async def test_all_providers_failed_is_503(client, api_providers):
    for provider in api_providers:
        provider.errors["*"] = provider_error(provider.name, "service unavailable")

    res = await client.get("/api/v1/stocks/AAPL")

    assert res.status_code == 503
    error = res.json()["error"]
    assert error["code"] == "ALL_PROVIDERS_FAILED"
    assert "Yahoo Finance" in error["message"]


async def test_compare(client):
    res = await client.post("/api/v1/stocks/compare", json={"tickers": ["AAPL", "msft"]})

    assert res.status_code == 200
    body = res.json()
    assert body["summary"]["successful"] == 2
    assert [c["ticker"] for c in body["comparisons"]] == ["AAPL", "MSFT"]


async def test_compare_over_limit(client):
    res = await client.post(
        "/api/v1/stocks/compare", json={"tickers": ["A", "B", "C", "D", "E", "F"]},
    )
    assert res.status_code == 400
    assert "Maximum 5 stocks" in res.json()["error"]["message"]


async def test_compare_rejects_blank_ticker(client):
    res = await client.post("/api/v1/stocks/compare", json={"tickers": ["AAPL", " "]})
    assert res.status_code == 400


async def test_compare_requires_tickers(client):
    res = await client.post("/api/v1/stocks/compare", json={"tickers": []})
    assert res.status_code == 400
