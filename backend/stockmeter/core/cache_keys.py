"""Cache Keys — consistent key naming and TTLs for everything stored in Redis.

Invariants:
    - Key pattern is {namespace}:{entity}:{identifier}
    - Tickers and currency codes are upper-cased; search queries lower-cased and stripped
    - Provider names are lower-cased
    - TTLs are in seconds
"""


class CacheTTL:
    """Time-to-live per cached entity (seconds)."""
    STOCK_PRICE = 5 * 60
    STOCK_FINANCIALS = 24 * 60 * 60
    SEARCH_RESULTS = 5 * 60
    FAIR_VALUE = 60 * 60
    INDUSTRY_PEERS = 24 * 60 * 60
    STOCK_PROFILE = 5 * 60
    EXCHANGE_RATES = 24 * 60 * 60


class CacheKeys:
    """Key builders. Static methods only — import the class, not instances."""

    @staticmethod
    def stock_price(ticker: str) -> str:
        return f"stock:price:{ticker.upper()}"

    @staticmethod
    def stock_financials(ticker: str, period: str = "annual") -> str:
        return f"stock:financials:{ticker.upper()}:{period}"

    @staticmethod
    def stock_profile(ticker: str) -> str:
        return f"stock:profile:{ticker.upper()}"

    @staticmethod
    def search_results(query: str) -> str:
        return f"search:results:{query.lower().strip()}"

    @staticmethod
    def fair_value(ticker: str) -> str:
        return f"valuation:fairvalue:{ticker.upper()}"

    @staticmethod
    def model_details(ticker: str) -> str:
        return f"valuation:details:{ticker.upper()}"

    @staticmethod
    def dcf_valuation(ticker: str) -> str:
        return f"valuation:dcf:{ticker.upper()}"

    @staticmethod
    def ddm_valuation(ticker: str) -> str:
        return f"valuation:ddm:{ticker.upper()}"

    @staticmethod
    def relative_valuation(ticker: str) -> str:
        return f"valuation:relative:{ticker.upper()}"

    @staticmethod
    def graham_valuation(ticker: str) -> str:
        return f"valuation:graham:{ticker.upper()}"

    @staticmethod
    def industry_peers(ticker: str) -> str:
        return f"stock:peers:{ticker.upper()}"

    @staticmethod
    def exchange_rate(from_currency: str, to_currency: str) -> str:
        return f"exchange:rate:{from_currency.upper()}:{to_currency.upper()}"

    @staticmethod
    def exchange_rates(base_currency: str) -> str:
        return f"exchange:rates:{base_currency.upper()}"

    @staticmethod
    def provider_status(provider_name: str) -> str:
        return f"provider:status:{provider_name.lower()}"

    @staticmethod
    def stock_pattern(ticker: str) -> str:
        """Pattern matching every stock:* entry for one ticker."""
        return f"stock:*:{ticker.upper()}"

    @staticmethod
    def valuation_pattern(ticker: str) -> str:
        """Pattern matching every valuation:* entry for one ticker."""
        return f"valuation:*:{ticker.upper()}"
