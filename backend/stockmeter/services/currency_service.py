"""Currency Service — USD-based exchange rates, conversion and display formatting.

Invariants:
    - Rates are always quoted against USD (base currency)
    - Live rates cached under exchange:rates:USD for CacheTTL.EXCHANGE_RATES
    - Missing API key, failed request or non-success payload → static fallback table
      (never cached, so live rates are picked up once the API recovers)
    - Unknown currency code → ExchangeRateNotFoundError
    - IDR, VND and JPY are formatted without decimals
"""

import logging
import math
import time
from typing import Any

import httpx

from stockmeter.core.cache_keys import CacheKeys, CacheTTL
from stockmeter.core.errors import ExchangeRateNotFoundError
from stockmeter.core.repository_protocols import JSONCache

logger = logging.getLogger(__name__)

BASE_CURRENCY = "USD"
EXCHANGE_RATE_API_URL = "https://v6.exchangerate-api.com/v6/{api_key}/latest/{base}"

FALLBACK_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "IDR": 15750.0,
    "JPY": 149.5,
    "CNY": 7.24,
    "INR": 83.12,
    "AUD": 1.53,
    "CAD": 1.36,
    "SGD": 1.34,
    "MYR": 4.72,
    "THB": 35.8,
    "PHP": 56.5,
    "VND": 24500.0,
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "IDR": "Rp",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "C$",
    "SGD": "S$",
    "MYR": "RM",
    "THB": "฿",
    "PHP": "₱",
    "VND": "₫",
}

ZERO_DECIMAL_CURRENCIES = frozenset({"IDR", "VND", "JPY"})


def fallback_rates() -> dict[str, Any]:
    return {
        "base": BASE_CURRENCY,
        "rates": dict(FALLBACK_RATES),
        "timestamp": int(time.time() * 1000),
        "source": "fallback",
    }


class CurrencyService:
    def __init__(
        self,
        cache: JSONCache,
        api_key: str = "",
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cache = cache
        self.api_key = api_key
        self.client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)

    async def get_exchange_rates(self) -> dict[str, Any]:
        cache_key = CacheKeys.exchange_rates(BASE_CURRENCY)
        cached = await self.cache.get(cache_key)
        if cached:
            logger.info("Exchange rates retrieved from cache", extra={"cache_key": cache_key})
            return cached

        if not self.api_key:
            logger.warning("EXCHANGE_RATE_API_KEY not set, using fallback rates")
            return fallback_rates()

        rates = await self._fetch_exchange_rates()
        if rates is None:
            return fallback_rates()
        await self.cache.set(cache_key, rates, CacheTTL.EXCHANGE_RATES)
        logger.info("Exchange rates fetched from API and cached")
        return rates

    async def _fetch_exchange_rates(self) -> dict[str, Any] | None:
        url = EXCHANGE_RATE_API_URL.format(api_key=self.api_key, base=BASE_CURRENCY)
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Exchange rate API error: {e}")
            return None
        if payload.get("result") != "success" or not payload.get("conversion_rates"):
            logger.error(
                f"Exchange rate API returned an invalid response: {payload.get('error-type')}",
            )
            return None
        return {
            "base": BASE_CURRENCY,
            "rates": payload["conversion_rates"],
            "timestamp": int(time.time() * 1000),
            "source": "live",
        }

    async def convert_currency(
        self, amount: float, from_currency: str, to_currency: str,
    ) -> float:
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return amount

        rates = (await self.get_exchange_rates())["rates"]
        from_rate = rates.get(from_currency)
        if not from_rate:
            raise ExchangeRateNotFoundError(from_currency)
        to_rate = rates.get(to_currency)
        if not to_rate:
            raise ExchangeRateNotFoundError(to_currency)
        # via USD
        return amount / from_rate * to_rate

    @staticmethod
    def format_currency(amount: float, currency: str) -> str:
        currency = currency.upper()
        symbol = CURRENCY_SYMBOLS.get(currency, currency)
        if currency in ZERO_DECIMAL_CURRENCIES:
            # half-up, so 2.5 renders as 3
            return f"{symbol}{math.floor(amount + 0.5):,}"
        return f"{symbol}{amount:,.2f}"

    async def aclose(self) -> None:
        await self.client.aclose()
