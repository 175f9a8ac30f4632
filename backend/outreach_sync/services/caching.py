from __future__ import annotations

import json
import logging
from contextlib import closing
from typing import Any

import redis

from ..core.config import get_settings

logger = logging.getLogger(__name__)


def _get_sync_redis(url: str) -> redis.Redis:
    # One short-lived client per call; nothing is shared across event loops.
    return redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=5,
        socket_connect_timeout=5,
    )


def _read(client: redis.Redis, key: str) -> Any:
    raw = client.get(key)
    return json.loads(raw) if raw is not None else None


def _write(client: redis.Redis, key: str, value: Any, ttl: int | None) -> None:
    client.set(key, json.dumps(value), ex=ttl)


async def cached_get(
    key: str,
    set_value: Any | None = None,
    ttl: int | None = None,
) -> Any:
    """
    Redis-backed JSON cache for slow-changing reference data such as the
    company category list. Company records are never cached.

        value = await cached_get("k")                   # read, None on miss
        await cached_get("k", set_value=value, ttl=60)  # write, returns value

    The cache is optional. Without ``REDIS_URL``, or when Redis errors, reads
    miss and writes are dropped.
    """
    url = get_settings().REDIS_URL
    fallback = None if set_value is None else set_value
    if not url:
        return fallback

    try:
        with closing(_get_sync_redis(url)) as client:
            if set_value is None:
                return _read(client, key)
            _write(client, key, set_value, ttl)
            return set_value
    except redis.RedisError as exc:
        logger.warning("Redis unavailable for key %s; bypassing cache: %s", key, exc)
        return fallback
