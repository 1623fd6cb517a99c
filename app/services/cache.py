"""
Redis Caching Service

The cache layer of the book service: a key-value store of serialized books,
keyed by "books:<id>".

Features:
- Connection pooling to Redis (one client per process)
- Raw get/set/delete/keys operations with optional TTL
- Cache key generation and parsing helpers
- RedisError wrapped into CacheError so callers decide the policy

Cache Strategy:
- Created books: 10 minute TTL
- Updated books: no expiration (plain SET clears any previous TTL)
- Deleted books: key evicted
"""

import logging
import re
from typing import Optional, Protocol

import redis
from redis.exceptions import RedisError

from app.config import Settings
from app.exceptions import CacheError

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")


# =============================================================================
# Redis Connection
# =============================================================================

def create_redis_client(settings: Settings) -> redis.Redis:
    """
    Create a Redis client for the configured URL.

    The client owns a connection pool and is safe to share between threads.
    No connection is opened until the first command.
    """
    return redis.from_url(
        settings.redis_url,
        decode_responses=True,  # Return strings instead of bytes
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )


# =============================================================================
# Cache Key Generation
# =============================================================================

def make_cache_key(prefix: str, *args) -> str:
    """
    Generate a consistent cache key from prefix and arguments.

    Examples:
        make_cache_key("books", 1) -> "books:1"
        make_cache_key("books", "*") -> "books:*"
    """
    parts = [prefix]
    for arg in args:
        if arg is not None:
            parts.append(str(arg))
    return ":".join(parts)


def parse_cache_key_id(key: str, prefix: str) -> Optional[int]:
    """
    Extract the numeric id embedded in a "<prefix>:<id>" key.

    Returns None for malformed keys: wrong prefix, extra segments, or an id
    that is not a plain run of ASCII digits.
    """
    parts = key.split(":")
    if len(parts) != 2 or parts[0] != prefix:
        return None
    if not _DIGITS.fullmatch(parts[1]):
        return None
    return int(parts[1])


# =============================================================================
# Cache Layer
# =============================================================================

class Cache(Protocol):
    """Cache capabilities used by the book service."""

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        ...

    def get(self, key: str) -> Optional[str]:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self, pattern: str) -> list[str]:
        ...


class RedisCache:
    """
    Cache backed by a Redis client.

    Every operation raises CacheError when Redis fails, and get/keys also
    when a stored value or key is not valid UTF-8. A missing key is not
    an error (get returns None).
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """
        Store a value, with a TTL in seconds or without expiration.

        Without a TTL the key never expires, and any expiration it had
        before is cleared.
        """
        try:
            if ttl is None:
                self._client.set(key, value)
            else:
                self._client.setex(key, ttl, value)
        except RedisError as e:
            logger.warning(f"Cache set error for {key}: {e}")
            raise CacheError(f"Failed to write cache key {key}: {e}") from e
        logger.debug(f"Cache SET: {key} (TTL: {ttl if ttl is not None else 'none'})")

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._client.get(key)
        except (RedisError, UnicodeDecodeError) as e:
            logger.warning(f"Cache get error for {key}: {e}")
            raise CacheError(f"Failed to read cache key {key}: {e}") from e

        if value is None:
            logger.debug(f"Cache MISS: {key}")
        else:
            logger.debug(f"Cache HIT: {key}")
        return value

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except RedisError as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            raise CacheError(f"Failed to delete cache key {key}: {e}") from e
        logger.debug(f"Cache DELETE: {key}")

    def keys(self, pattern: str) -> list[str]:
        """
        Return all keys matching a Redis glob pattern.

        Examples:
            keys("books:*")
        """
        try:
            return list(self._client.keys(pattern))
        except (RedisError, UnicodeDecodeError) as e:
            logger.warning(f"Cache keys error for {pattern}: {e}")
            raise CacheError(f"Failed to list cache keys for {pattern}: {e}") from e


# =============================================================================
# Cache Statistics (for monitoring)
# =============================================================================

def get_cache_stats(client: Optional[redis.Redis]) -> dict:
    """
    Get cache statistics for monitoring.

    Returns:
        Dictionary with cache statistics, or just a status when unavailable
    """
    if client is None:
        return {"status": "disconnected"}

    try:
        info = client.info("stats")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "keys": client.dbsize(),
        }
    except RedisError:
        return {"status": "error"}
