"""
One chat turn, delivered as Server-Sent Events.

Frame order for every opened stream:

    init -> text* -> (done | error)

A reply found in the response cache is replayed back-to-back and leaves
session memory untouched. A freshly generated reply is written to the
cache and to memory first, then paced out one chunk per tick.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import Enum
from typing import Any, Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from kai.errors import StoreError
from kai.logging_config import logger
from kai.services.prompt_builder import build_prompt
from kai.storage.ip_log import log_ip
from kai.storage.memory_store import DEFAULT_MEMORY_LIMIT, get_memory, save_memory
from kai.storage.response_cache import DEFAULT_CACHE_TTL_SECONDS, lookup_reply, store_reply


DEFAULT_CHUNK_SIZE = 30
DEFAULT_CHUNK_INTERVAL = 0.05
STREAM_ERROR_MESSAGE = "Streaming failed"


class GenerationGateway(Protocol):
    async def generate(self, prompt: str) -> str: ...


class TurnState(str, Enum):
    INIT = "init"
    CACHE_CHECK = "cache_check"
    CACHE_HIT_REPLAY = "cache_hit_replay"
    GENERATE = "generate"
    DELIVER = "deliver"
    DONE = "done"
    ERROR = "error"


class CancellationToken:
    """
    Set once the consumer of a stream is gone; checked before every write.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def chunk_text(text: str, size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [text[i : i + size] for i in range(0, len(text), size)]


def encode_event(payload: dict[str, Any]) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode()


def init_event(client_ip: str, session_id: str) -> dict[str, Any]:
    return {"init": True, "ip": client_ip, "sessionId": session_id}


def text_event(chunk: str, session_id: str) -> dict[str, Any]:
    return {"text": chunk, "sessionId": session_id}


def done_event() -> dict[str, Any]:
    return {"done": True}


def error_event(message: str = STREAM_ERROR_MESSAGE) -> dict[str, Any]:
    return {"error": message}


class StreamDispatcher:
    def __init__(
        self,
        redis: Redis,
        gateway: GenerationGateway,
        *,
        system_prompt: str,
        memory_limit: int = DEFAULT_MEMORY_LIMIT,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_interval: float = DEFAULT_CHUNK_INTERVAL,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.redis = redis
        self.gateway = gateway
        self.system_prompt = system_prompt
        self.memory_limit = memory_limit
        self.cache_ttl_seconds = cache_ttl_seconds
        self.chunk_size = chunk_size
        self.chunk_interval = chunk_interval
        self._sleep = sleep

    @staticmethod
    def resolve_session_id(session_id: Optional[str]) -> str:
        return session_id or str(uuid.uuid4())

    async def _record_ip(self, client_ip: str, session_id: str) -> None:
        # The IP log is a side channel; a failed write never ends the turn.
        try:
            await log_ip(self.redis, client_ip, session_id)
        except (StoreError, RedisError) as exc:
            logger.warning("IP log write failed for session=%s: %s", session_id, exc)

    async def _generate_and_record(self, message: str, session_id: str) -> str:
        history = await get_memory(self.redis, session_id)
        prompt = build_prompt(self.system_prompt, history, message)
        reply = await self.gateway.generate(prompt)

        # Only a successful generation is recorded, cache first.
        await store_reply(self.redis, message, reply, ttl_seconds=self.cache_ttl_seconds)
        await save_memory(self.redis, session_id, "user", message, limit=self.memory_limit)
        await save_memory(self.redis, session_id, "assistant", reply, limit=self.memory_limit)
        return reply

    async def stream_turn(
        self,
        message: str,
        session_id: str,
        client_ip: str,
        token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[bytes]:
        """
        Run one turn and yield encoded SSE frames.

        ``session_id`` must already be resolved. Any exception after the
        init frame ends the stream with a single error frame.
        """
        token = token or CancellationToken()
        state = TurnState.INIT
        try:
            await self._record_ip(client_ip, session_id)
            if token.cancelled:
                return
            yield encode_event(init_event(client_ip, session_id))

            state = TurnState.CACHE_CHECK
            cached = await lookup_reply(self.redis, message)
            if cached is not None:
                state = TurnState.CACHE_HIT_REPLAY
                logger.info("Cache hit: session=%s reply_chars=%d", session_id, len(cached))
                for chunk in chunk_text(cached, self.chunk_size):
                    if token.cancelled:
                        return
                    yield encode_event(text_event(chunk, session_id))
            else:
                state = TurnState.GENERATE
                reply = await self._generate_and_record(message, session_id)
                logger.info("Generated reply: session=%s reply_chars=%d", session_id, len(reply))

                state = TurnState.DELIVER
                for chunk in chunk_text(reply, self.chunk_size):
                    await self._sleep(self.chunk_interval)
                    if token.cancelled:
                        return
                    yield encode_event(text_event(chunk, session_id))

            if token.cancelled:
                return
            state = TurnState.DONE
            yield encode_event(done_event())
        except Exception:
            logger.exception(
                "Streaming error: session=%s state=%s -> %s",
                session_id,
                state.value,
                TurnState.ERROR.value,
            )
            if token.cancelled:
                # Client already gone; nothing left to notify.
                return
            yield encode_event(error_event())
        finally:
            token.cancel()


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CHUNK_INTERVAL",
    "STREAM_ERROR_MESSAGE",
    "GenerationGateway",
    "TurnState",
    "CancellationToken",
    "StreamDispatcher",
    "chunk_text",
    "encode_event",
    "init_event",
    "text_event",
    "done_event",
    "error_event",
]
