"""Provider Status Repository — writes ProviderManager health snapshots to the DB.

Invariants:
    - sync() upserts exactly one row per provider name and commits once
    - A failed sync rolls back and raises DatabaseError, so callers can report it
    - list_all() is ordered by provider name
    - Session close belongs to the caller (DatabaseSessionManager)
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockmeter.core.errors import DatabaseError
from stockmeter.models.provider_status import (
    STATUS_ACTIVE,
    STATUS_UNHEALTHY,
    ProviderStatus,
)
from stockmeter.services.provider_manager import ProviderHealth

logger = logging.getLogger(__name__)


class ProviderStatusRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def sync(self, health: Iterable[ProviderHealth]) -> list[ProviderStatus]:
        try:
            return await self._sync(list(health))
        except (SQLAlchemyError, OSError) as e:
            await self.session.rollback()
            logger.error(f"Provider status sync failed: {e}", extra={"operation": "sync"})
            raise DatabaseError("Provider status sync failed", "sync")

    async def _sync(self, health: list[ProviderHealth]) -> list[ProviderStatus]:
        names = [h.name for h in health]
        result = await self.session.execute(
            select(ProviderStatus).where(ProviderStatus.provider.in_(names)),
        )
        existing = {row.provider: row for row in result.scalars()}

        now = datetime.now(timezone.utc)
        rows = []
        for h in health:
            row = existing.get(h.name)
            if row is None:
                row = ProviderStatus(provider=h.name)
                self.session.add(row)
            row.status = STATUS_ACTIVE if h.is_healthy else STATUS_UNHEALTHY
            row.failure_count = h.failure_count
            row.remaining_calls = h.rate_limit_remaining
            row.last_failure = h.last_failure
            row.updated_at = now
            rows.append(row)

        await self.session.commit()
        logger.debug(f"Provider status synced for {len(rows)} providers")
        return rows

    async def list_all(self) -> list[ProviderStatus]:
        result = await self.session.execute(
            select(ProviderStatus).order_by(ProviderStatus.provider),
        )
        return list(result.scalars())
