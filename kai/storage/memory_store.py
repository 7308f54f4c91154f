"""
Rolling per-session conversation memory.

Each session owns a Redis list ``mem:<session_id>`` of JSON-encoded
MemoryEntry objects, oldest first, capped to the most recent ``limit``
entries.
"""

from __future__ import annotations

from pydantic import ValidationError
from redis.asyncio import Redis

from kai.logging_config import logger
from kai.models import MemoryEntry, Role
from kai.redis_client import redis_lrange_json, redis_rpush_json, store_errors


MEMORY_KEY_TEMPLATE = "mem:{session_id}"
DEFAULT_MEMORY_LIMIT = 8


def memory_key(session_id: str) -> str:
    return MEMORY_KEY_TEMPLATE.format(session_id=session_id)


async def get_memory(redis: Redis, session_id: str) -> list[MemoryEntry]:
    """
    Return the stored history for a session, oldest first.
    Unknown sessions yield an empty list.
    """
    key = memory_key(session_id)
    entries: list[MemoryEntry] = []
    for item in await redis_lrange_json(redis, key, 0, -1):
        try:
            entries.append(MemoryEntry.model_validate(item))
        except ValidationError:
            logger.warning("Skipping invalid memory entry in %s: %r", key, item)
    return entries


async def save_memory(
    redis: Redis,
    session_id: str,
    role: Role,
    text: str,
    *,
    limit: int = DEFAULT_MEMORY_LIMIT,
) -> None:
    """
    Append one entry and trim the list so only the newest ``limit`` remain.
    """
    key = memory_key(session_id)
    entry = MemoryEntry(role=role, text=text)
    await redis_rpush_json(redis, key, entry.model_dump())
    with store_errors(f"LTRIM {key}"):
        await redis.ltrim(key, -limit, -1)


__all__ = ["MEMORY_KEY_TEMPLATE", "DEFAULT_MEMORY_LIMIT", "memory_key", "get_memory", "save_memory"]
