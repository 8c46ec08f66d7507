"""
Optional Redis cache for the JSON image listings.

Caching is best effort: with REDIS_URL unset, or Redis down, every helper
degrades to a no-op and the listing is rebuilt from the database.
"""
import json

import redis
from redis.exceptions import RedisError

from app.core.config import REDIS_URL
from app.core.logging_config import get_logger

logger = get_logger()

_redis_client = None


def get_redis_client():
    global _redis_client

    if _redis_client is not None or not REDIS_URL:
        return _redis_client

    try:
        client = redis.Redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
    except RedisError as e:
        logger.warning(f"Redis unavailable, image listings will not be cached: {e}")
        return None

    logger.info("Redis connected for image listing cache")
    _redis_client = client
    return _redis_client


def image_list_key(entity: str, entity_id: int) -> str:
    return f"images:{entity}:{entity_id}"


def get_cache(key: str):
    client = get_redis_client()
    if client is None:
        return None
    try:
        raw = client.get(key)
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None
    return json.loads(raw) if raw else None


def set_cache(key: str, value, ttl: int = 60):
    client = get_redis_client()
    if client is None:
        return
    try:
        client.setex(key, ttl, json.dumps(value))
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")


def delete_cache(key: str):
    client = get_redis_client()
    if client is None:
        return
    try:
        client.delete(key)
    except RedisError as e:
        # A stale listing expires on its own after the TTL
        logger.warning(f"Cache invalidation failed for {key}: {e}")
