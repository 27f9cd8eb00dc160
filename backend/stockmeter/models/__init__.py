"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - Only operational state is persisted: market data lives in Redis, never the DB

Design Decisions:
    - All models imported here so Base.metadata is complete for create_all and alembic
"""

from stockmeter.models.provider_status import ProviderStatus  # noqa: F401
