"""
Shared Redis client for readiness checks.

Celery and the rate limiter open their own connections from REDIS_URL; this
pool only serves the API process.
"""
import logging

import redis
from redis.connection import ConnectionPool

from app.core.config import settings

logger = logging.getLogger(__name__)

_pool: ConnectionPool | None = None
_client: redis.Redis | None = None


def get_redis_pool() -> ConnectionPool:
    """Get or create a shared Redis connection pool."""
    global _pool
    if _pool is not None:
        return _pool

    if not settings.REDIS_URL:
        raise RuntimeError("REDIS_URL is not configured")

    _pool = ConnectionPool.from_url(
        settings.REDIS_URL,
        max_connections=5,
        socket_timeout=5,
        socket_connect_timeout=5,
        retry_on_timeout=True,
        health_check_interval=30,
        decode_responses=True,
    )
    logger.info("Redis connection pool created (max_connections=5)")
    return _pool


def get_redis_client() -> redis.Redis:
    """Get or create a Redis client using the shared connection pool."""
    global _client
    if _client is None:
        _client = redis.Redis(connection_pool=get_redis_pool())
    return _client


def close_redis_pool():
    """Close the Redis connection pool. Called on app shutdown."""
    global _pool, _client
    if _client is not None:
        _client.close()
        _client = None
    if _pool is not None:
        _pool.disconnect()
        _pool = None
    logger.info("Redis pool closed")
