from __future__ import annotations

import json
from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError

from kai.errors import GatewayError


def _redis_range(values: list[str], start: int, end: int) -> list[str]:
    """Inclusive Redis-style index range with negative index support."""
    size = len(values)
    if start < 0:
        start = max(size + start, 0)
    if end < 0:
        end = size + end
    if start >= size or start > end:
        return []
    return values[start : end + 1]


class InMemoryRedis:
    """
    Minimal async Redis replacement used for tests.

    Supports the commands used by the chat pipeline, key expiry driven by a
    manual clock (``advance``), injected failures per command name
    (``fail_commands`` / ``fail_keys``) and a call log for ordering assertions.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        self._lists: dict[str, list[str]] = {}
        self.now = 0.0
        self.fail_commands: set[str] = set()
        self.fail_keys: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _record(self, command: str, key: str = "") -> None:
        self.calls.append((command, key))
        if command in self.fail_commands or key in self.fail_keys:
            raise RedisConnectionError(f"simulated {command} {key} failure")

    def _purge_expired(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and self.now >= deadline:
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    async def ping(self) -> bool:
        self._record("ping")
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def get(self, key: str):
        self._record("get", key)
        self._purge_expired(key)
        return self._data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None):
        self._record("set", key)
        self._data[key] = value
        if ex is not None:
            self._expires_at[key] = self.now + ex
        else:
            self._expires_at.pop(key, None)
        return True

    async def rpush(self, key: str, *values: str) -> int:
        self._record("rpush", key)
        lst = self._lists.setdefault(key, [])
        lst.extend(values)
        return len(lst)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        self._record("ltrim", key)
        lst = self._lists.get(key, [])
        self._lists[key] = _redis_range(lst, start, end)
        return True

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        self._record("lrange", key)
        return list(_redis_range(self._lists.get(key, []), start, end))

    def list_items(self, key: str) -> list[Any]:
        return [json.loads(raw) for raw in self._lists.get(key, [])]


class ScriptedGateway:
    """
    Generation gateway double: returns ``reply`` (or raises ``error``) and
    records every prompt it was given.
    """

    def __init__(self, reply: str = "Hello from Kaï!", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def failing_gateway(message: str = "upstream unavailable") -> ScriptedGateway:
    return ScriptedGateway(error=GatewayError(message))


class SleepRecorder:
    """Stand-in for asyncio.sleep that returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def decode_frames(body: bytes | str) -> list[dict[str, Any]]:
    """Decode a complete SSE body into its JSON payloads, in order."""
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    payloads: list[dict[str, Any]] = []
    for frame in text.split("\n\n"):
        for line in frame.splitlines():
            if line.startswith("data:"):
                payloads.append(json.loads(line[len("data:") :].strip()))
    return payloads


def reply_text(payloads: list[dict[str, Any]]) -> str:
    return "".join(p["text"] for p in payloads if "text" in p)
