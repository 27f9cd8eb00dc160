"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable (readiness)
    - Cache state is reported but never fails readiness: the cache is optional

Design Decisions:
    - Singletons read through their modules at request time (set by the lifespan)
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import stockmeter.infrastructure.cache as cache_module
import stockmeter.infrastructure.database as db_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "stockmeter-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe — database connectivity plus cache state."""
    db_manager = db_module.db_manager
    cache = cache_module.cache_service
    db_ok = await db_manager.health_check() if db_manager else False
    cache_ok = await cache.health_check() if cache else False
    checks = {
        "database": "healthy" if db_ok else "unavailable",
        "cache": "healthy" if cache_ok else "unavailable",
    }
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "checks": checks,
            },
        )
    return {"status": "ready", "checks": checks}
