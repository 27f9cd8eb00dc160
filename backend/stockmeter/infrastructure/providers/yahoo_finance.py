"""Yahoo Finance adapter — unofficial query2 endpoints, no API key.

Invariants:
    - Numeric fields arrive as {"raw": ..., "fmt": ...}; _raw() unwraps them (plain numbers pass)
    - Statements merged by endDate.fmt and sorted newest first
    - Peers: search by the first word of the industry, keep same industry or sector,
      at most 15 candidates examined, stop at 10 peers
    - A peer whose lookup fails is skipped with a warning, never fails the whole call

Design Decisions:
    - Browser User-Agent: Yahoo rejects the default httpx agent
"""

import logging
from typing import Any

from stockmeter.core.domain_types import (
    FinancialStatement,
    FinancialStatements,
    IndustryPeer,
    Period,
    StockPrice,
    StockProfile,
    StockSearchResult,
)
from stockmeter.core.errors import ProviderError
from stockmeter.core.statement_merge import (
    merge_statements_by_date,
    sort_newest_first,
    to_float,
    to_ratio,
)
from stockmeter.infrastructure.providers.base import HttpProvider, epoch_to_datetime

logger = logging.getLogger(__name__)

PEER_CANDIDATES = 15
MAX_PEERS = 10

_ANNUAL_MODULES = (
    "incomeStatementHistory", "balanceSheetHistory", "cashflowStatementHistory",
)
_QUARTERLY_MODULES = (
    "incomeStatementHistoryQuarterly",
    "balanceSheetHistoryQuarterly",
    "cashflowStatementHistoryQuarterly",
)


def _raw(data: dict, key: str) -> Any:
    value = data.get(key)
    if isinstance(value, dict):
        return value.get("raw")
    return value


def _end_date(row: dict) -> str | None:
    end = row.get("endDate")
    if isinstance(end, dict):
        return end.get("fmt")
    return end


class YahooFinanceProvider(HttpProvider):
    name = "Yahoo Finance"
    key = "yahoo_finance"
    base_url = "https://query2.finance.yahoo.com"
    default_headers = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
        ),
    }

    async def _quote_summary(self, ticker: str, modules: str, what: str) -> dict:
        ticker = ticker.upper()
        payload = await self._get_json(
            f"/v10/finance/quoteSummary/{ticker}", {"modules": modules}, what,
        )
        results = ((payload or {}).get("quoteSummary") or {}).get("result") or []
        if not results:
            raise self._error(f"No {what} data found")
        return results[0]

    async def search_stocks(self, query: str) -> list[StockSearchResult]:
        logger.info(f"Yahoo Finance: Searching stocks with query: {query}")
        payload = await self._get_json(
            "/v1/finance/search",
            {"q": query, "quotesCount": 20, "newsCount": 0},
            "search",
        )
        results = [
            StockSearchResult(
                ticker=quote["symbol"],
                name=quote.get("shortname") or quote.get("longname") or quote["symbol"],
                exchange=quote.get("exchange") or "N/A",
                type=quote.get("quoteType") or "EQUITY",
            )
            for quote in (payload or {}).get("quotes") or []
            if quote.get("symbol") and quote.get("shortname")
        ]
        return results[:20]

    async def get_stock_profile(self, ticker: str) -> StockProfile:
        logger.info(
            f"Yahoo Finance: Fetching profile for {ticker}", extra={"ticker": ticker},
        )
        result = await self._quote_summary(
            ticker, "assetProfile,summaryProfile,price,defaultKeyStatistics", "profile",
        )
        profile = result.get("assetProfile") or result.get("summaryProfile") or {}
        price = result.get("price") or {}
        stats = result.get("defaultKeyStatistics") or {}
        return StockProfile(
            ticker=ticker.upper(),
            name=price.get("longName") or price.get("shortName") or ticker,
            exchange=price.get("exchangeName") or "N/A",
            sector=profile.get("sector") or "N/A",
            industry=profile.get("industry") or "N/A",
            description=profile.get("longBusinessSummary") or "",
            market_cap=to_float(_raw(price, "marketCap")),
            shares_outstanding=to_float(
                _raw(stats, "sharesOutstanding") or _raw(price, "sharesOutstanding"),
            ),
        )

    async def get_stock_price(self, ticker: str) -> StockPrice:
        ticker = ticker.upper()
        logger.info(
            f"Yahoo Finance: Fetching price for {ticker}", extra={"ticker": ticker},
        )
        payload = await self._get_json(
            f"/v8/finance/chart/{ticker}", {"interval": "1d", "range": "1d"}, "price",
        )
        results = ((payload or {}).get("chart") or {}).get("result") or []
        if not results:
            raise self._error("No price data found")
        meta = results[0].get("meta") or {}
        price = to_float(meta.get("regularMarketPrice")) or to_float(
            meta.get("previousClose"),
        )
        if price <= 0:
            raise self._error("Price not available")
        return StockPrice(
            ticker=ticker.upper(),
            price=price,
            currency=meta.get("currency") or "USD",
            timestamp=epoch_to_datetime(meta.get("regularMarketTime")),
        )

    async def get_financials(
        self, ticker: str, period: Period,
    ) -> FinancialStatements:
        logger.info(
            f"Yahoo Finance: Fetching {period.value} financials for {ticker}",
            extra={"ticker": ticker},
        )
        income_mod, balance_mod, cashflow_mod = (
            _ANNUAL_MODULES if period == Period.ANNUAL else _QUARTERLY_MODULES
        )
        result = await self._quote_summary(
            ticker,
            ",".join((income_mod, balance_mod, cashflow_mod, "defaultKeyStatistics")),
            "financials",
        )
        merged = merge_statements_by_date(
            (result.get(income_mod) or {}).get("incomeStatementHistory") or [],
            (result.get(balance_mod) or {}).get("balanceSheetStatements") or [],
            (result.get(cashflow_mod) or {}).get("cashflowStatements") or [],
            _end_date,
        )

        statements = []
        for date, parts in merged.items():
            inc, bal, cf = parts.income, parts.balance, parts.cashflow
            operating = to_float(_raw(cf, "totalCashFromOperatingActivities"))
            capex = to_float(_raw(cf, "capitalExpenditures"))
            free_cash_flow = to_float(_raw(cf, "freeCashFlow")) or (
                operating - abs(capex)
            )
            statements.append(FinancialStatement(
                date=date,
                revenue=to_float(_raw(inc, "totalRevenue")),
                net_income=to_float(_raw(inc, "netIncome")),
                ebitda=to_float(_raw(inc, "ebitda")),
                eps=to_float(_raw(inc, "basicEPS") or _raw(inc, "dilutedEPS")),
                total_assets=to_float(_raw(bal, "totalAssets")),
                total_liabilities=to_float(_raw(bal, "totalLiab")),
                book_value=to_float(_raw(bal, "totalStockholderEquity")),
                free_cash_flow=free_cash_flow,
                capex=abs(capex),
                working_capital=(
                    to_float(_raw(bal, "totalCurrentAssets"))
                    - to_float(_raw(bal, "totalCurrentLiabilities"))
                ),
                dividend_per_share=to_float(_raw(inc, "dividendPerShare")),
            ))

        return FinancialStatements(
            ticker=ticker.upper(),
            period=period,
            statements=sort_newest_first(statements),
        )

    async def _peer(self, ticker: str, profile: StockProfile) -> IndustryPeer | None:
        ticker = ticker.upper()
        peer_profile = await self.get_stock_profile(ticker)
        if (
            peer_profile.industry != profile.industry
            and peer_profile.sector != profile.sector
        ):
            return None
        result = await self._quote_summary(
            ticker, "defaultKeyStatistics,summaryDetail", "peer ratios",
        )
        stats = result.get("defaultKeyStatistics") or {}
        summary = result.get("summaryDetail") or {}
        return IndustryPeer(
            ticker=ticker,
            name=peer_profile.name,
            sector=peer_profile.sector,
            industry=peer_profile.industry,
            market_cap=peer_profile.market_cap,
            pe_ratio=to_ratio(_raw(stats, "trailingPE") or _raw(summary, "trailingPE")),
            pb_ratio=to_ratio(_raw(stats, "priceToBook")),
            ps_ratio=to_ratio(
                _raw(stats, "priceToSalesTrailing12Months")
                or _raw(summary, "priceToSalesTrailing12Months"),
            ),
        )

    async def get_industry_peers(self, ticker: str) -> list[IndustryPeer]:
        logger.info(
            f"Yahoo Finance: Fetching industry peers for {ticker}",
            extra={"ticker": ticker},
        )
        profile = await self.get_stock_profile(ticker)
        keyword = profile.industry.split(" ")[0] if profile.industry else ""
        if not keyword or keyword == "N/A":
            return []
        candidates = await self.search_stocks(keyword)

        peers: list[IndustryPeer] = []
        for candidate in candidates[:PEER_CANDIDATES]:
            if candidate.ticker.upper() == ticker.upper():
                continue
            try:
                peer = await self._peer(candidate.ticker, profile)
            except ProviderError as e:
                logger.warning(
                    f"Failed to fetch peer data for {candidate.ticker}: {e.message}",
                    extra={"ticker": candidate.ticker},
                )
                continue
            if peer is None:
                continue
            peers.append(peer)
            if len(peers) >= MAX_PEERS:
                break
        return peers
