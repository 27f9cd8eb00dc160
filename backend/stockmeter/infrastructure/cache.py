"""Cache Service — Redis-backed JSON cache with TTLs and connection tracking.

Invariants:
    - Values stored as JSON strings; get() returns the decoded object or None
    - set() with ttl > 0 uses SETEX, otherwise plain SET (no expiry)
    - Redis failures are logged and swallowed: the cache never fails a request
    - While disconnected, operations are skipped; reconnect is retried at most
      once per reconnect_interval_seconds
    - Disabled cache behaves as an always-miss cache

Design Decisions:
    - Singleton cache_service initialized on startup (FastAPI lifespan), mirroring db_manager
    - Client injectable in the constructor so tests run against an in-process fake
    - delete_pattern uses SCAN, never KEYS (non-blocking on large keyspaces)
"""

import json
import logging
import time
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheService:
    """Thin JSON wrapper over an async Redis client."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        enabled: bool = True,
        client: Any | None = None,
        reconnect_interval_seconds: float = 30.0,
    ):
        self.enabled = enabled
        self.client = client or aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30,
        )
        self.reconnect_interval_seconds = reconnect_interval_seconds
        self._connected = False
        self._last_connect_attempt: float | None = None

    async def connect(self) -> bool:
        """Ping Redis and record connectivity."""
        self._last_connect_attempt = time.monotonic()
        if not self.enabled:
            return False
        try:
            await self.client.ping()
        except RedisError as e:
            logger.error(f"Redis connection error: {e}")
            self._connected = False
            return False
        if not self._connected:
            logger.info("Redis connection established")
        self._connected = True
        return True

    async def _ready(self, operation: str, key: str) -> bool:
        if not self.enabled:
            return False
        if self._connected:
            return True
        last = self._last_connect_attempt
        if last is None or time.monotonic() - last >= self.reconnect_interval_seconds:
            logger.info("Redis reconnecting...")
            if await self.connect():
                return True
        logger.warning(
            f"Redis not connected, skipping cache {operation}",
            extra={"cache_key": key},
        )
        return False

    def _mark_failed(self, operation: str, key: str, error: Exception) -> None:
        logger.error(
            f"Error during cache {operation} for key {key}: {error}",
            extra={"cache_key": key},
        )
        if isinstance(error, RedisError):
            self._connected = False

    async def get(self, key: str) -> Any | None:
        if not await self._ready("get", key):
            return None
        try:
            data = await self.client.get(key)
        except RedisError as e:
            self._mark_failed("get", key, e)
            return None
        if data is None:
            logger.debug(f"Cache miss for key: {key}")
            return None
        try:
            value = json.loads(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            return None
        logger.debug(f"Cache hit for key: {key}")
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if not await self._ready("set", key):
            return
        try:
            serialized = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Value for cache key {key} is not JSON serializable: {e}")
            return
        try:
            if ttl and ttl > 0:
                await self.client.setex(key, ttl, serialized)
                logger.debug(f"Cache set for key: {key} with TTL: {ttl}s")
            else:
                await self.client.set(key, serialized)
                logger.debug(f"Cache set for key: {key} without TTL")
        except RedisError as e:
            self._mark_failed("set", key, e)

    async def delete(self, key: str) -> None:
        if not await self._ready("delete", key):
            return
        try:
            await self.client.delete(key)
            logger.debug(f"Cache deleted for key: {key}")
        except RedisError as e:
            self._mark_failed("delete", key, e)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number deleted."""
        if not await self._ready("pattern delete", pattern):
            return 0
        try:
            keys = [k async for k in self.client.scan_iter(match=pattern)]
            if keys:
                await self.client.delete(*keys)
                logger.debug(
                    f"Cache deleted {len(keys)} keys matching pattern: {pattern}",
                )
            return len(keys)
        except RedisError as e:
            self._mark_failed("pattern delete", pattern, e)
            return 0

    def is_ready(self) -> bool:
        return self.enabled and self._connected

    async def health_check(self) -> bool:
        """Check Redis connectivity (for readiness probes)."""
        if not self.enabled:
            return False
        return await self.connect()

    async def disconnect(self) -> None:
        try:
            await self.client.aclose()
            logger.info("Redis connection closed gracefully")
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")
        finally:
            self._connected = False


# Singleton (initialized on startup)
cache_service: CacheService | None = None


def init_cache(redis_url: str, enabled: bool = True) -> CacheService:
    global cache_service
    cache_service = CacheService(redis_url, enabled=enabled)
    return cache_service


def get_cache_service() -> CacheService:
    """FastAPI dependency for the cache."""
    if not cache_service:
        raise RuntimeError("Cache not initialized")
    return cache_service
