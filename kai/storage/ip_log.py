from __future__ import annotations

import datetime
from typing import Optional

from pydantic import ValidationError
from redis.asyncio import Redis

from kai.logging_config import logger
from kai.models import IpLogEntry
from kai.redis_client import redis_lrange_json, redis_rpush_json, store_errors


IP_LOG_KEY = "ips"
SESSION_IP_KEY_TEMPLATE = "session_ip:{session_id}"


def _utc_timestamp() -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def log_ip(redis: Redis, ip: str, session_id: Optional[str]) -> IpLogEntry:
    """
    Append an entry to the global IP log and remember the session's last address.
    The log is never trimmed.
    """
    entry = IpLogEntry(ip=ip, session_id=session_id, ts=_utc_timestamp())
    await redis_rpush_json(redis, IP_LOG_KEY, entry.model_dump(by_alias=True))
    if session_id:
        key = SESSION_IP_KEY_TEMPLATE.format(session_id=session_id)
        with store_errors(f"SET {key}"):
            await redis.set(key, ip)
    return entry


async def recent_ips(redis: Redis, *, limit: int = 50) -> list[IpLogEntry]:
    """
    Return the newest ``limit`` log entries, oldest first.
    """
    entries: list[IpLogEntry] = []
    for item in await redis_lrange_json(redis, IP_LOG_KEY, -limit, -1):
        try:
            entries.append(IpLogEntry.model_validate(item))
        except ValidationError:
            logger.warning("Skipping invalid IP log entry: %r", item)
    return entries


__all__ = ["IP_LOG_KEY", "SESSION_IP_KEY_TEMPLATE", "log_ip", "recent_ips"]
