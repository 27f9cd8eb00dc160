"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Every upstream failure is mapped onto the core/errors.py hierarchy
    - Clients (httpx, redis, SQLAlchemy) are created once per process and closed on shutdown
"""
