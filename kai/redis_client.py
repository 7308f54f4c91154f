"""
Redis helper utilities for the chat pipeline.

The client handle is created once per process (see kai.routes.lifespan),
stored on ``app.state`` and handed to the storage helpers explicitly. This
module also provides small helpers for JSON-encoded list elements so that
the memory store and the IP log do not duplicate that logic.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Iterator

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .errors import StoreError
from .logging_config import logger


def create_redis_client(url: str) -> Redis:
    """
    Build the long-lived Redis client. Connections are opened lazily by
    the connection pool on first command.
    """
    return Redis.from_url(url, decode_responses=True)


async def close_redis_client(redis: Redis) -> None:
    await redis.aclose()


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """
    Translate driver failures into StoreError so callers only deal with
    one exception type for storage problems.
    """
    try:
        yield
    except RedisError as exc:
        raise StoreError(f"Redis {operation} failed: {exc}") from exc


async def redis_rpush_json(redis: Redis, key: str, value: Any) -> None:
    """
    Append a JSON-serialisable value to the tail of a list.
    """
    data = json.dumps(value, ensure_ascii=False)
    with store_errors(f"RPUSH {key}"):
        await redis.rpush(key, data)


async def redis_lrange_json(redis: Redis, key: str, start: int, end: int) -> list[Any]:
    """
    Load list elements in [start, end] and decode each one as JSON.
    Malformed elements are skipped.
    """
    with store_errors(f"LRANGE {key}"):
        rows = await redis.lrange(key, start, end)
    items: list[Any] = []
    for raw in rows or []:
        try:
            items.append(json.loads(raw))
        except (TypeError, json.JSONDecodeError):
            logger.warning("Skipping malformed list element in %s: %r", key, raw)
    return items


__all__ = [
    "create_redis_client",
    "close_redis_client",
    "store_errors",
    "redis_rpush_json",
    "redis_lrange_json",
]
