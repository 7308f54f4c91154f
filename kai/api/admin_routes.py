from __future__ import annotations

from fastapi import APIRouter, Depends
from redis.asyncio import Redis

from kai.deps import get_redis
from kai.errors import StoreError, service_unavailable
from kai.logging_config import logger
from kai.models import IpLogEntry
from kai.settings import settings
from kai.storage.ip_log import recent_ips

# No authentication on this router; it is a debugging aid.
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/recent-ips", response_model=list[IpLogEntry])
async def recent_ips_endpoint(redis: Redis = Depends(get_redis)) -> list[IpLogEntry]:
    """
    Return the most recent IP log entries, oldest first.
    """
    try:
        return await recent_ips(redis, limit=settings.recent_ips_limit)
    except StoreError as exc:
        logger.error("Failed to load IP log: %s", exc)
        raise service_unavailable("IP log is unavailable") from exc


__all__ = ["router"]
