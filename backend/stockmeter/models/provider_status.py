"""ProviderStatus ORM — last known health snapshot of each financial data provider.

Invariants:
    - provider is unique (one row per provider display name)
    - status is "active" or "unhealthy"
    - remaining_calls NULL means the provider never reported a rate limit
    - updated_at refreshed on every sync

Design Decisions:
    - Snapshot table, not a log: ProviderManager keeps live state in memory and
      ProviderStatusRepository.sync() writes it through after management actions
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stockmeter.db.base import Base

STATUS_ACTIVE = "active"
STATUS_UNHEALTHY = "unhealthy"


class ProviderStatus(Base):
    __tablename__ = "provider_status"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    provider: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=STATUS_ACTIVE,
    )
    failure_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    remaining_calls: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    last_failure: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "status": self.status,
            "failure_count": self.failure_count,
            "remaining_calls": self.remaining_calls,
            "last_failure": self.last_failure.isoformat() if self.last_failure else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
