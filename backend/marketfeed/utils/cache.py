"""Redis client for the session revocation cache"""

from functools import lru_cache

from redis import Redis, RedisError

from ..config import settings


@lru_cache(maxsize=1)
def get_redis_client() -> Redis:
    """
    Build the shared Redis client

    The client owns a connection pool; it is created once per process and
    handed to services explicitly.
    """
    return Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        password=settings.REDIS_PASSWORD,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        decode_responses=True,
    )


def get_redis() -> Redis:
    """Redis dependency for FastAPI"""
    return get_redis_client()


def redis_health_check(client: Redis) -> bool:
    """Return True if Redis answers PING"""
    try:
        return bool(client.ping())
    except RedisError:
        return False
