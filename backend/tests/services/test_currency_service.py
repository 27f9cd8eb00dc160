"""CurrencyService — live rates, fallback table, conversion and formatting."""

import httpx
import pytest

from stockmeter.core.cache_keys import CacheTTL
from stockmeter.core.errors import ExchangeRateNotFoundError
from stockmeter.services.currency_service import FALLBACK_RATES, CurrencyService


def _transport(payload=None, status=200, calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status, json=payload or {})
    return httpx.MockTransport(handler)


LIVE_PAYLOAD = {
    "result": "success",
    "base_code": "USD",
    "conversion_rates": {"USD": 1.0, "EUR": 0.9, "IDR": 16000.0, "JPY": 150.0},
}


async def test_no_api_key_uses_fallback(memory_cache):
    service = CurrencyService(memory_cache, api_key="")

    rates = await service.get_exchange_rates()

    assert rates["source"] == "fallback"
    assert rates["base"] == "USD"
    assert rates["rates"] == FALLBACK_RATES
    assert memory_cache.data == {}
    await service.aclose()


async def test_live_rates_fetched_and_cached(memory_cache):
    calls = []
    service = CurrencyService(
        memory_cache, api_key="k", transport=_transport(LIVE_PAYLOAD, calls=calls),
    )

    rates = await service.get_exchange_rates()
    again = await service.get_exchange_rates()

    assert rates["source"] == "live"
    assert rates["rates"]["EUR"] == 0.9
    assert again == rates
    assert len(calls) == 1
    assert calls[0].endswith("/v6/k/latest/USD")
    assert memory_cache.ttls["exchange:rates:USD"] == CacheTTL.EXCHANGE_RATES
    await service.aclose()


async def test_http_error_falls_back_without_caching(memory_cache):
    service = CurrencyService(memory_cache, api_key="k", transport=_transport(status=500))

    rates = await service.get_exchange_rates()

    assert rates["source"] == "fallback"
    assert memory_cache.data == {}
    await service.aclose()


async def test_unsuccessful_payload_falls_back(memory_cache):
    payload = {"result": "error", "error-type": "invalid-key"}
    service = CurrencyService(memory_cache, api_key="k", transport=_transport(payload))

    rates = await service.get_exchange_rates()

    assert rates["source"] == "fallback"
    await service.aclose()


async def test_convert_via_usd(memory_cache):
    service = CurrencyService(memory_cache, api_key="k", transport=_transport(LIVE_PAYLOAD))

    assert await service.convert_currency(100, "usd", "eur") == pytest.approx(90.0)
    assert await service.convert_currency(90, "EUR", "JPY") == pytest.approx(15000.0)
    await service.aclose()


async def test_convert_same_currency_is_identity(memory_cache):
    service = CurrencyService(memory_cache)
    assert await service.convert_currency(42.5, "GBP", "gbp") == 42.5
    await service.aclose()


async def test_convert_unknown_currency(memory_cache):
    service = CurrencyService(memory_cache)
    with pytest.raises(ExchangeRateNotFoundError) as exc:
        await service.convert_currency(10, "USD", "XYZ")
    assert exc.value.currency == "XYZ"
    assert exc.value.http_status == 400
    await service.aclose()


@pytest.mark.parametrize("amount,currency,expected", [
    (1234.5, "USD", "$1,234.50"),
    (0.5, "EUR", "€0.50"),
    (1575000.4, "IDR", "Rp1,575,000"),
    (149.6, "JPY", "¥150"),
    (2.5, "JPY", "¥3"),
    (15750.5, "IDR", "Rp15,751"),
    (10, "chf", "CHF10.00"),
])
def test_format_currency(amount, currency, expected):
    assert CurrencyService.format_currency(amount, currency) == expected
