"""ProviderStatusRepository and DatabaseSessionManager on in-memory SQLite."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import text

from stockmeter.core.errors import DatabaseError
from stockmeter.infrastructure.provider_status_repository import ProviderStatusRepository
from stockmeter.services.provider_manager import ProviderHealth


async def test_sync_inserts_one_row_per_provider(db_manager):
    health = [
        ProviderHealth("Financial Modeling Prep"),
        ProviderHealth(
            "Alpha Vantage", is_healthy=False, failure_count=3,
            last_failure=datetime(2026, 1, 2, tzinfo=timezone.utc),
            rate_limit_remaining=0,
        ),
    ]
    async with db_manager.session() as session:
        await ProviderStatusRepository(session).sync(health)

    async with db_manager.session() as session:
        rows = await ProviderStatusRepository(session).list_all()

    assert [r.provider for r in rows] == ["Alpha Vantage", "Financial Modeling Prep"]
    unhealthy = rows[0].to_dict()
    assert unhealthy["status"] == "unhealthy"
    assert unhealthy["failure_count"] == 3
    assert unhealthy["remaining_calls"] == 0
    assert unhealthy["last_failure"].startswith("2026-01-02")
    assert rows[1].status == "active"
    assert rows[1].remaining_calls is None


async def test_sync_updates_existing_rows(db_manager):
    async with db_manager.session() as session:
        await ProviderStatusRepository(session).sync(
            [ProviderHealth("Yahoo Finance", is_healthy=False, failure_count=5)],
        )
    async with db_manager.session() as session:
        await ProviderStatusRepository(session).sync([ProviderHealth("Yahoo Finance")])

    async with db_manager.session() as session:
        rows = await ProviderStatusRepository(session).list_all()

    assert len(rows) == 1
    assert rows[0].status == "active"
    assert rows[0].failure_count == 0


async def test_health_check(db_manager):
    assert await db_manager.health_check() is True


async def test_sqlalchemy_errors_become_database_error(db_manager):
    with pytest.raises(DatabaseError) as exc:
        async with db_manager.session() as session:
            await session.execute(text("SELECT * FROM missing_table"))
    assert exc.value.http_status == 503


async def test_failed_sync_raises_database_error():
    from stockmeter.infrastructure.database import DatabaseSessionManager

    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")  # no schema
    async with manager.session() as session:
        with pytest.raises(DatabaseError) as exc:
            await ProviderStatusRepository(session).sync([ProviderHealth("FMP")])
    assert exc.value.operation == "sync"
    await manager.close()
