"""HTTP Provider Base — shared httpx plumbing for every market-data adapter.

Invariants:
    - Every failure surfaces as ProviderError (core/errors.py), never a raw httpx exception
    - HTTP 429 (plus any provider-specific statuses) → rate_limited=True and
      "rate limit" in the message, which ProviderManager reads
    - Non-2xx and non-JSON bodies are failures
    - One AsyncClient per adapter; aclose() releases it

Design Decisions:
    - transport injectable: tests pass httpx.MockTransport, production uses the default pool
    - Auth params merged per request via _auth_params() (FMP/Alpha Vantage/Twelve Data
      all take ?apikey=)
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from stockmeter.core.errors import ProviderError

logger = logging.getLogger(__name__)


class HttpProvider:
    """Base class for adapters that talk JSON over HTTP."""

    name: str = "provider"
    key: str = ""
    base_url: str = ""
    rate_limit_statuses: frozenset[int] = frozenset({429})
    default_headers: dict[str, str] = {}

    def __init__(
        self,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            headers=self.default_headers,
            transport=transport,
        )

    def _auth_params(self) -> dict[str, str]:
        return {}

    def _error(
        self,
        message: str,
        status_code: int | None = None,
        rate_limited: bool = False,
    ) -> ProviderError:
        return ProviderError(
            self.name, message, status_code=status_code, rate_limited=rate_limited,
        )

    async def _get_json(
        self, path: str, params: dict[str, Any] | None = None, operation: str = "request",
    ) -> Any:
        query = {**(params or {}), **self._auth_params()}
        logger.debug(
            f"{self.name} request: GET {path}",
            extra={"provider": self.name, "operation": operation},
        )
        try:
            response = await self.client.get(path, params=query)
        except httpx.TimeoutException:
            raise self._error(f"{operation} timed out")
        except httpx.HTTPError as e:
            raise self._error(f"{operation} request failed: {e}")

        status = response.status_code
        if status in self.rate_limit_statuses:
            raise self._error(
                f"{operation} rate limit exceeded ({status})",
                status_code=status, rate_limited=True,
            )
        if status >= 400:
            raise self._error(
                f"{operation} failed with HTTP {status}", status_code=status,
            )
        try:
            return response.json()
        except ValueError:
            raise self._error(f"{operation} returned invalid JSON", status_code=status)

    async def aclose(self) -> None:
        await self.client.aclose()


def epoch_to_datetime(value: Any) -> datetime:
    """Unix seconds → aware UTC datetime; missing/invalid → now."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return datetime.now(timezone.utc)
    if seconds <= 0:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def date_to_datetime(value: Any) -> datetime:
    """ISO date/datetime string → aware UTC datetime; missing/invalid → now."""
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
