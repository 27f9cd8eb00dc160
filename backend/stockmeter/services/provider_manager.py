"""Provider Manager — ordered failover across financial data providers.

Invariants:
    - Each sweep tries every provider once, starting at current_index and wrapping
    - An unhealthy provider is skipped unless it is the last candidate of the sweep
    - Success resets failure_count, marks healthy, and makes that provider current
    - Failure increments failure_count; failure_count >= max_failures marks unhealthy
    - A failure mentioning "rate limit" or "429" sets rate_limit_remaining to 0
    - Every candidate failed → AllProvidersFailedError listing "<provider>: <message>"
    - Management calls accept a display name, case-insensitively, or a registry key

Design Decisions:
    - In-memory health state, one manager per process (FastAPI dependency singleton)
    - No backoff or half-open probing: recovery is via success on the last-candidate
      retry, mark_provider_healthy(), or reset_all_providers()
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TypeVar

from stockmeter.core.domain_types import (
    FinancialStatements,
    IndustryPeer,
    Period,
    StockPrice,
    StockProfile,
    StockSearchResult,
)
from stockmeter.core.errors import (
    AllProvidersFailedError,
    ProviderError,
    ResourceNotFoundError,
    StockmeterError,
)
from stockmeter.core.repository_protocols import FinancialDataProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_LOW = 100
RATE_LIMIT_CRITICAL = 50


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ProviderHealth:
    name: str
    is_healthy: bool = True
    failure_count: int = 0
    last_failure: datetime | None = None
    rate_limit_remaining: int | None = None
    last_checked: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "is_healthy": self.is_healthy,
            "failure_count": self.failure_count,
            "last_failure": self.last_failure.isoformat() if self.last_failure else None,
            "rate_limit_remaining": self.rate_limit_remaining,
            "last_checked": self.last_checked.isoformat(),
        }


def _failure_detail(error: Exception) -> str:
    """Provider-free message; the manager adds the provider name itself."""
    if isinstance(error, ProviderError):
        return error.detail
    if isinstance(error, StockmeterError):
        return error.message
    return str(error)


def _is_rate_limit(error: Exception, message: str) -> bool:
    if isinstance(error, ProviderError) and error.rate_limited:
        return True
    lowered = message.lower()
    return "rate limit" in lowered or "429" in lowered


class ProviderManager:
    """Runs provider calls in priority order, failing over on error."""

    def __init__(
        self,
        providers: Sequence[FinancialDataProvider],
        max_failures: int = 3,
    ):
        if not providers:
            raise ValueError("ProviderManager needs at least one provider")
        self.providers = list(providers)
        self.max_failures = max_failures
        self.current_index = 0
        self._health: dict[str, ProviderHealth] = {
            p.name: ProviderHealth(name=p.name) for p in self.providers
        }
        logger.info(
            "ProviderManager initialized with providers: "
            + ", ".join(p.name for p in self.providers),
        )
        logger.info(f"Primary provider: {self.providers[0].name}")

    async def execute_with_failover(
        self,
        operation: Callable[[FinancialDataProvider], Awaitable[T]],
        operation_name: str = "operation",
    ) -> T:
        failures: list[tuple[str, str]] = []
        count = len(self.providers)

        for i in range(count):
            index = (self.current_index + i) % count
            provider = self.providers[index]
            health = self._health[provider.name]

            if not health.is_healthy and i < count - 1:
                logger.warning(
                    f"Skipping unhealthy provider: {provider.name}",
                    extra={"provider": provider.name, "operation": operation_name},
                )
                continue

            try:
                logger.info(
                    f"Executing {operation_name} with provider: {provider.name}",
                    extra={"provider": provider.name, "operation": operation_name},
                )
                result = await operation(provider)
            except Exception as e:
                message = _failure_detail(e)
                logger.error(
                    f"Provider {provider.name} failed for {operation_name}: {message}",
                    extra={"provider": provider.name, "operation": operation_name},
                )
                self._record_failure(health, e, message)
                failures.append((provider.name, message))
                continue

            self._record_success(health)
            if index != self.current_index:
                logger.info(
                    f"Switched primary provider from "
                    f"{self.providers[self.current_index].name} to {provider.name}",
                    extra={"provider": provider.name},
                )
                self.current_index = index
            return result

        logger.error(
            f"All providers failed for {operation_name}",
            extra={"operation": operation_name},
        )
        raise AllProvidersFailedError(operation_name, failures)

    def _record_success(self, health: ProviderHealth) -> None:
        health.failure_count = 0
        health.is_healthy = True
        health.last_checked = _now()
        logger.debug(f"Provider {health.name} health: OK")

    def _record_failure(
        self, health: ProviderHealth, error: Exception, message: str,
    ) -> None:
        health.failure_count += 1
        health.last_failure = _now()
        health.last_checked = health.last_failure
        if _is_rate_limit(error, message):
            health.rate_limit_remaining = 0
            logger.warning(
                f"Provider {health.name} hit rate limit",
                extra={"provider": health.name},
            )
        if health.failure_count >= self.max_failures and health.is_healthy:
            logger.warning(
                f"Provider {health.name} exceeded failure threshold, marking as unhealthy",
                extra={"provider": health.name, "failure_count": health.failure_count},
            )
            health.is_healthy = False

    # -- convenience wrappers -------------------------------------------------

    async def search_stocks(self, query: str) -> list[StockSearchResult]:
        return await self.execute_with_failover(
            lambda p: p.search_stocks(query), f"search_stocks({query})",
        )

    async def get_stock_profile(self, ticker: str) -> StockProfile:
        return await self.execute_with_failover(
            lambda p: p.get_stock_profile(ticker), f"get_stock_profile({ticker})",
        )

    async def get_stock_price(self, ticker: str) -> StockPrice:
        return await self.execute_with_failover(
            lambda p: p.get_stock_price(ticker), f"get_stock_price({ticker})",
        )

    async def get_financials(
        self, ticker: str, period: Period = Period.ANNUAL,
    ) -> FinancialStatements:
        return await self.execute_with_failover(
            lambda p: p.get_financials(ticker, period),
            f"get_financials({ticker}, {period.value})",
        )

    async def get_industry_peers(self, ticker: str) -> list[IndustryPeer]:
        return await self.execute_with_failover(
            lambda p: p.get_industry_peers(ticker), f"get_industry_peers({ticker})",
        )

    # -- health management ----------------------------------------------------

    def _get_health(self, name: str) -> ProviderHealth:
        """Look up by display name ("Yahoo Finance") or registry key ("yahoo_finance")."""
        health = self._health.get(name)
        if health is not None:
            return health
        lowered = name.lower()
        for provider in self.providers:
            if lowered in (provider.name.lower(), getattr(provider, "key", "")):
                return self._health[provider.name]
        raise ResourceNotFoundError("Provider", name)

    def get_health_status(self) -> list[ProviderHealth]:
        return [self._health[p.name] for p in self.providers]

    def get_current_provider(self) -> str:
        return self.providers[self.current_index].name

    def mark_provider_healthy(self, name: str) -> ProviderHealth:
        health = self._get_health(name)
        health.is_healthy = True
        health.failure_count = 0
        health.last_checked = _now()
        logger.info(
            f"Provider {health.name} manually marked as healthy",
            extra={"provider": health.name},
        )
        return health

    def reset_all_providers(self) -> None:
        for health in self._health.values():
            health.is_healthy = True
            health.failure_count = 0
            health.last_failure = None
            health.last_checked = _now()
        logger.info("All provider health statuses reset")

    def update_rate_limit(self, name: str, remaining: int) -> None:
        health = self._get_health(name)
        health.rate_limit_remaining = remaining
        if remaining < RATE_LIMIT_LOW:
            logger.warning(
                f"Provider {health.name} rate limit low: {remaining} remaining",
                extra={"provider": health.name},
            )
        if remaining < RATE_LIMIT_CRITICAL:
            logger.warning(
                f"Provider {health.name} approaching rate limit threshold",
                extra={"provider": health.name},
            )

    async def aclose(self) -> None:
        for provider in self.providers:
            await provider.aclose()
