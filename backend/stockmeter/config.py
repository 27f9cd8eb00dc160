"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets (provider API keys, DB/Redis credentials) come from environment variables
    - get_settings() is cached (lru_cache) — single instance per process
    - A provider without an API key still loads; its calls fail and failover moves on

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://stockmeter:stockmeter@db:5432/stockmeter"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Cache
    redis_url: str = "redis://localhost:6379/0"
    cache_enabled: bool = True

    # Financial data providers
    fmp_api_key: str = ""
    twelve_data_api_key: str = ""
    alpha_vantage_api_key: str = ""
    provider_timeout_seconds: float = 10.0
    provider_max_failures: int = 3
    # Priority order; first entry is the initial primary provider
    provider_order: list[str] = [
        "fmp", "twelve_data", "yahoo_finance", "alpha_vantage",
    ]

    # Currency
    exchange_rate_api_key: str = ""
    exchange_rate_timeout_seconds: float = 5.0

    # Valuation
    compare_max_tickers: int = 50
    compare_timeout_seconds: float = 10.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
