"""Provider Routes — live failover health and manual recovery.

Invariants:
    - GET /status reads ProviderManager memory, never the DB
    - Management actions persist a snapshot to provider_status after the change
    - A failed snapshot write is logged and reported (persisted=false), the
      in-memory change still stands
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stockmeter.api.dependencies import get_provider_manager
from stockmeter.core.errors import DatabaseError
from stockmeter.infrastructure.database import get_db
from stockmeter.infrastructure.provider_status_repository import ProviderStatusRepository
from stockmeter.services.provider_manager import ProviderManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/providers", tags=["providers"])


def _status_payload(manager: ProviderManager) -> dict:
    return {
        "current_provider": manager.get_current_provider(),
        "providers": [h.to_dict() for h in manager.get_health_status()],
    }


async def _persist(manager: ProviderManager, db: AsyncSession) -> bool:
    try:
        await ProviderStatusRepository(db).sync(manager.get_health_status())
    except DatabaseError as e:
        logger.warning(
            f"Provider status snapshot not persisted: {e.message}",
            extra={"error_code": e.code},
        )
        return False
    return True


@router.get("/status")
async def provider_status(manager: ProviderManager = Depends(get_provider_manager)):
    return _status_payload(manager)


@router.post("/{name}/healthy")
async def mark_provider_healthy(
    name: str,
    manager: ProviderManager = Depends(get_provider_manager),
    db: AsyncSession = Depends(get_db),
):
    """name is a display name ("Yahoo Finance") or a provider_order key ("yahoo_finance")."""
    manager.mark_provider_healthy(name)
    return {**_status_payload(manager), "persisted": await _persist(manager, db)}


@router.post("/reset")
async def reset_providers(
    manager: ProviderManager = Depends(get_provider_manager),
    db: AsyncSession = Depends(get_db),
):
    manager.reset_all_providers()
    return {**_status_payload(manager), "persisted": await _persist(manager, db)}
