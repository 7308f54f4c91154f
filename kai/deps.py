from fastapi import Depends, Request
from redis.asyncio import Redis

from .services.stream_dispatcher import GenerationGateway, StreamDispatcher
from .settings import settings


async def get_redis(request: Request) -> Redis:
    """
    FastAPI dependency returning the process-wide Redis handle created in
    the application lifespan. Tests override it with an in-memory fake.
    """
    return request.app.state.redis


async def get_gateway(request: Request) -> GenerationGateway:
    return request.app.state.gateway


async def get_dispatcher(
    redis: Redis = Depends(get_redis),
    gateway: GenerationGateway = Depends(get_gateway),
) -> StreamDispatcher:
    return StreamDispatcher(
        redis,
        gateway,
        system_prompt=settings.system_prompt,
        memory_limit=settings.memory_limit,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        chunk_size=settings.stream_chunk_size,
        chunk_interval=settings.stream_chunk_interval,
    )
