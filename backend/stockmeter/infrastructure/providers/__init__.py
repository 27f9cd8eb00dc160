"""Financial data provider adapters and their registry.

Invariants:
    - build_providers() returns adapters in settings.provider_order; the first is primary
    - Unknown names in provider_order are logged and skipped

Design Decisions:
    - Explicit dict registry, no auto-discovery
"""

import logging

import httpx

from stockmeter.config import Settings
from stockmeter.infrastructure.providers.alpha_vantage import AlphaVantageProvider
from stockmeter.infrastructure.providers.base import HttpProvider
from stockmeter.infrastructure.providers.fmp import FMPProvider
from stockmeter.infrastructure.providers.twelve_data import TwelveDataProvider
from stockmeter.infrastructure.providers.yahoo_finance import YahooFinanceProvider

logger = logging.getLogger(__name__)

PROVIDER_REGISTRY: dict[str, type[HttpProvider]] = {
    "fmp": FMPProvider,
    "twelve_data": TwelveDataProvider,
    "yahoo_finance": YahooFinanceProvider,
    "alpha_vantage": AlphaVantageProvider,
}


def _api_key(settings: Settings, key: str) -> str:
    return {
        "fmp": settings.fmp_api_key,
        "twelve_data": settings.twelve_data_api_key,
        "alpha_vantage": settings.alpha_vantage_api_key,
    }.get(key, "")


def build_providers(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[HttpProvider]:
    providers: list[HttpProvider] = []
    for key in settings.provider_order:
        cls = PROVIDER_REGISTRY.get(key)
        if cls is None:
            logger.warning(f"Unknown provider in provider_order: {key}")
            continue
        if key == "yahoo_finance":
            provider = cls(
                timeout_seconds=settings.provider_timeout_seconds,
                transport=transport,
            )
        else:
            provider = cls(
                api_key=_api_key(settings, key),
                timeout_seconds=settings.provider_timeout_seconds,
                transport=transport,
            )
        providers.append(provider)
    logger.info(
        "Financial data providers configured: "
        + ", ".join(p.name for p in providers),
    )
    return providers


__all__ = [
    "AlphaVantageProvider",
    "FMPProvider",
    "HttpProvider",
    "PROVIDER_REGISTRY",
    "TwelveDataProvider",
    "YahooFinanceProvider",
    "build_providers",
]
