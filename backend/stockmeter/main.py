"""Stockmeter API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map StockmeterError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, cache and services initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Startup never blocks on Redis or the database: an unreachable cache degrades to
      always-miss, an unreachable database only skips the provider status seed
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockmeter.api.dependencies import close_services, init_services
from stockmeter.api.error_handlers import register_error_handlers
from stockmeter.api.routes import currency, health, providers, stocks
from stockmeter.config import get_settings
from stockmeter.core.errors import DatabaseError
from stockmeter.infrastructure.cache import init_cache
from stockmeter.infrastructure.database import DatabaseSessionManager, init_db
from stockmeter.infrastructure.observability import setup_logging
from stockmeter.infrastructure.provider_status_repository import ProviderStatusRepository
from stockmeter.services.provider_manager import ProviderManager

logger = logging.getLogger(__name__)


async def seed_provider_status(
    db: DatabaseSessionManager, manager: ProviderManager,
) -> bool:
    """Write the initial provider snapshot; False when the database is unavailable."""
    try:
        async with db.session() as session:
            await ProviderStatusRepository(session).sync(manager.get_health_status())
    except (DatabaseError, OSError) as e:
        logger.warning(f"Provider status seed skipped: {e}")
        return False
    logger.info("Provider status seeded")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    cache = init_cache(settings.redis_url, enabled=settings.cache_enabled)
    await cache.connect()
    manager = init_services(settings, cache)
    await seed_provider_status(db, manager)
    logger.info("Stockmeter API started")
    yield
    logger.info("Stockmeter API shutting down")
    await close_services()
    await cache.disconnect()
    await db.close()


app = FastAPI(
    title="Stockmeter API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(stocks.router)
app.include_router(providers.router)
app.include_router(currency.router)

register_error_handlers(app)
