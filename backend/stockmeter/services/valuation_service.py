"""Valuation Service — orchestrates provider data, the four models and caching.

Invariants:
    - Provider data is fetched through ProviderManager (failover applies to every call)
    - Profile, price, annual financials and peers are fetched concurrently
    - One model failing (arithmetic error) yields None for that model only
    - Provider exhaustion (AllProvidersFailedError) propagates to the caller
    - Fair value results are cached under valuation:fairvalue:{T} for CacheTTL.FAIR_VALUE
    - compare() never raises for a single ticker; only the batch timeout raises

Design Decisions:
    - Cache is the JSONCache protocol so tests inject an in-memory fake
    - Models are pure functions (core/valuation_models.py); this layer logs and caches
"""

import asyncio
import logging
import time

from stockmeter.core.cache_keys import CacheKeys, CacheTTL
from stockmeter.core.domain_types import (
    STATUS_COLOR_CODES,
    DCFResult,
    DDMResult,
    FairValueResult,
    FinancialStatement,
    GrahamResult,
    IndustryPeer,
    Period,
    RelativeValueResult,
    StockProfile,
)
from stockmeter.core.errors import (
    ComparisonLimitError,
    ComparisonTimeoutError,
    StockmeterError,
)
from stockmeter.core.model_details import build_model_details
from stockmeter.core.repository_protocols import JSONCache
from stockmeter.core.tickers import normalize_ticker, normalize_tickers
from stockmeter.core.valuation_math import (
    average_fair_value,
    determine_valuation_status,
)
from stockmeter.core.valuation_models import (
    calculate_dcf,
    calculate_ddm,
    calculate_graham_number,
    calculate_relative_value,
)
from stockmeter.services.provider_manager import ProviderManager

logger = logging.getLogger(__name__)

_MODEL_ERRORS = (ArithmeticError, ValueError)


class ValuationService:
    def __init__(
        self,
        provider_manager: ProviderManager,
        cache: JSONCache,
        compare_max_tickers: int = 50,
        compare_timeout_seconds: float = 10.0,
    ):
        self.provider_manager = provider_manager
        self.cache = cache
        self.compare_max_tickers = compare_max_tickers
        self.compare_timeout_seconds = compare_timeout_seconds

    # -- individual models ----------------------------------------------------

    def calculate_dcf(
        self,
        ticker: str,
        statements: list[FinancialStatement],
        profile: StockProfile,
    ) -> DCFResult | None:
        try:
            result = calculate_dcf(statements, profile)
        except _MODEL_ERRORS as e:
            logger.error(f"Error calculating DCF for {ticker}: {e}", extra={"ticker": ticker})
            return None
        if result is None:
            logger.warning(
                f"DCF not computed for {ticker}: insufficient or invalid data",
                extra={"ticker": ticker},
            )
        else:
            logger.info(
                f"DCF calculated for {ticker}: ${result.fair_value:.2f}",
                extra={"ticker": ticker},
            )
        return result

    def calculate_ddm(
        self, ticker: str, statements: list[FinancialStatement],
    ) -> DDMResult | None:
        try:
            result = calculate_ddm(statements)
        except _MODEL_ERRORS as e:
            logger.error(f"Error calculating DDM for {ticker}: {e}", extra={"ticker": ticker})
            return None
        if result.applicable:
            logger.info(
                f"DDM calculated for {ticker}: ${result.fair_value:.2f}",
                extra={"ticker": ticker},
            )
        else:
            logger.info(f"DDM not applicable for {ticker}", extra={"ticker": ticker})
        return result

    def calculate_relative_value(
        self,
        ticker: str,
        statements: list[FinancialStatement],
        peers: list[IndustryPeer],
        profile: StockProfile,
    ) -> RelativeValueResult | None:
        try:
            result = calculate_relative_value(statements, peers, profile)
        except _MODEL_ERRORS as e:
            logger.error(
                f"Error calculating relative value for {ticker}: {e}",
                extra={"ticker": ticker},
            )
            return None
        if result is None:
            logger.warning(
                f"Relative value not computed for {ticker}: {len(peers)} peers",
                extra={"ticker": ticker},
            )
        return result

    def calculate_graham_number(
        self,
        ticker: str,
        statements: list[FinancialStatement],
        profile: StockProfile,
    ) -> GrahamResult | None:
        try:
            result = calculate_graham_number(statements, profile)
        except _MODEL_ERRORS as e:
            logger.error(
                f"Error calculating Graham Number for {ticker}: {e}",
                extra={"ticker": ticker},
            )
            return None
        if result is not None and not result.applicable:
            logger.info(
                f"Graham Number not applicable for {ticker}", extra={"ticker": ticker},
            )
        return result

    # -- all models -----------------------------------------------------------

    async def calculate_all_models(self, ticker: str) -> FairValueResult:
        ticker = normalize_ticker(ticker)
        cache_key = CacheKeys.fair_value(ticker)
        cached = await self.cache.get(cache_key)
        if cached:
            logger.info(
                f"Returning cached fair value for {ticker}",
                extra={"ticker": ticker, "cache_key": cache_key},
            )
            return FairValueResult.from_dict(cached)

        logger.info(f"Calculating all models for {ticker}", extra={"ticker": ticker})
        pm = self.provider_manager
        profile, price, financials, peers = await asyncio.gather(
            pm.get_stock_profile(ticker),
            pm.get_stock_price(ticker),
            pm.get_financials(ticker, Period.ANNUAL),
            pm.get_industry_peers(ticker),
        )
        statements = financials.chronological()

        dcf = self.calculate_dcf(ticker, statements, profile)
        ddm = self.calculate_ddm(ticker, statements)
        relative = self.calculate_relative_value(ticker, statements, peers, profile)
        graham = self.calculate_graham_number(ticker, statements, profile)

        fair_values = [
            dcf.fair_value if dcf else None,
            ddm.fair_value if ddm else None,
            relative.pe_ratio_fair_value if relative else None,
            relative.pb_ratio_fair_value if relative else None,
            relative.ps_ratio_fair_value if relative else None,
            graham.fair_value if graham else None,
        ]
        result = FairValueResult(
            ticker=ticker,
            current_price=price.price,
            dcf=dcf,
            ddm=ddm,
            relative_value=relative,
            graham=graham,
            valuation_status=determine_valuation_status(price.price, fair_values),
        )

        await self.cache.set(cache_key, result.to_dict(), CacheTTL.FAIR_VALUE)
        logger.info(
            f"All models calculated for {ticker}, status: {result.valuation_status.value}",
            extra={"ticker": ticker},
        )
        return result

    async def get_model_details(self, ticker: str) -> dict:
        ticker = normalize_ticker(ticker)
        cache_key = CacheKeys.model_details(ticker)
        cached = await self.cache.get(cache_key)
        if cached:
            return cached
        details = build_model_details(await self.calculate_all_models(ticker))
        await self.cache.set(cache_key, details, CacheTTL.FAIR_VALUE)
        return details

    # -- batch comparison -----------------------------------------------------

    async def _compare_one(self, ticker: str) -> dict:
        try:
            result = await self.calculate_all_models(ticker)
        except StockmeterError as e:
            logger.warning(
                f"Comparison failed for {ticker}: {e.message}",
                extra={"ticker": ticker, "error_code": e.code},
            )
            return {"ticker": ticker, "success": False, "error": e.message}
        except Exception as e:
            logger.exception(
                f"Unexpected comparison failure for {ticker}", extra={"ticker": ticker},
            )
            return {
                "ticker": ticker, "success": False,
                "error": str(e) or "Failed to calculate fair value",
            }
        return {"ticker": ticker, "success": True, "data": result}

    async def compare(self, tickers: list[str]) -> dict:
        started = time.monotonic()
        unique = normalize_tickers(tickers)
        if len(unique) > self.compare_max_tickers:
            raise ComparisonLimitError(len(unique), self.compare_max_tickers)

        try:
            outcomes = await asyncio.wait_for(
                asyncio.gather(*(self._compare_one(t) for t in unique)),
                timeout=self.compare_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Comparison of {len(unique)} tickers timed out",
                extra={"operation": "compare"},
            )
            raise ComparisonTimeoutError(self.compare_timeout_seconds)

        comparisons = []
        failed = []
        for outcome in outcomes:
            if not outcome["success"]:
                failed.append({"ticker": outcome["ticker"], "error": outcome["error"]})
                continue
            result: FairValueResult = outcome["data"]
            fair_values = result.fair_values()
            comparisons.append({
                **result.to_dict(),
                "fair_values": fair_values,
                "average_fair_value": average_fair_value(list(fair_values.values())),
                "color_code": STATUS_COLOR_CODES[result.valuation_status],
            })

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Batch comparison completed: {len(comparisons)}/{len(unique)} succeeded",
            extra={"operation": "compare", "elapsed_ms": elapsed_ms},
        )
        return {
            "comparisons": comparisons,
            "summary": {
                "total": len(unique),
                "successful": len(comparisons),
                "failed": len(failed),
                "failed_tickers": failed,
            },
            "response_time_ms": elapsed_ms,
        }
