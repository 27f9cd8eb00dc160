"""Database Infrastructure — declarative Base shared by ORM models and alembic.

Invariants:
    - All sessions are async (AsyncSession), created by DatabaseSessionManager

Design Decisions:
    - asyncpg driver for PostgreSQL; aiosqlite in tests
"""
