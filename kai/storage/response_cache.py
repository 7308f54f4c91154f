"""
Reply cache keyed by the normalized user message.

Different raw messages that normalize to the same text share one entry.
"""

from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from kai.redis_client import store_errors


CACHE_KEY_PREFIX = "cache:"
DEFAULT_CACHE_TTL_SECONDS = 86400


def normalize_message(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def cache_key(text: Optional[str]) -> str:
    return f"{CACHE_KEY_PREFIX}{normalize_message(text)}"


async def lookup_reply(redis: Redis, message: str) -> Optional[str]:
    """
    Return the cached reply for ``message`` or None on a miss.
    An empty cached value counts as a miss.
    """
    key = cache_key(message)
    with store_errors(f"GET {key}"):
        cached = await redis.get(key)
    if not cached:
        return None
    return cached


async def store_reply(
    redis: Redis,
    message: str,
    reply: str,
    *,
    ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
) -> None:
    key = cache_key(message)
    with store_errors(f"SET {key}"):
        await redis.set(key, reply, ex=ttl_seconds)


__all__ = [
    "CACHE_KEY_PREFIX",
    "DEFAULT_CACHE_TTL_SECONDS",
    "normalize_message",
    "cache_key",
    "lookup_reply",
    "store_reply",
]
