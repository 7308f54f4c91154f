"""
Client side of ``POST /chat/stream``.

Keeps a chat transcript in memory and grows the assistant's reply as text
frames arrive. Rendering is left to an ``on_update`` callback that receives
the state after every visible change.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional

import httpx

from kai.logging_config import logger


Sender = Literal["user", "assistant"]

FRAME_DELIMITER = "\n\n"
DATA_PREFIX = "data:"
SERVER_ERROR_TEXT = "Server error"


@dataclass
class ChatMessage:
    sender: Sender
    text: str


@dataclass
class ChatState:
    messages: list[ChatMessage] = field(default_factory=list)
    typing: bool = False
    session_id: Optional[str] = None
    client_ip: Optional[str] = None


def extract_frames(buffer: str) -> tuple[list[str], str]:
    """
    Split complete frames off the front of ``buffer``.
    Returns the frames and the incomplete remainder.
    """
    frames: list[str] = []
    while True:
        idx = buffer.find(FRAME_DELIMITER)
        if idx == -1:
            return frames, buffer
        frames.append(buffer[:idx].strip())
        buffer = buffer[idx + len(FRAME_DELIMITER) :]


def parse_frame(frame: str) -> list[dict[str, Any]]:
    """
    Decode every ``data:`` line of a frame. Lines that are not valid JSON
    objects are ignored.
    """
    payloads: list[dict[str, Any]] = []
    for line in frame.split("\n"):
        if not line.startswith(DATA_PREFIX):
            continue
        text = line[len(DATA_PREFIX) :].lstrip()
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed stream payload: %r", text)
            continue
        if isinstance(payload, dict):
            payloads.append(payload)
    return payloads


class ChatStreamConsumer:
    def __init__(
        self,
        base_url: str,
        *,
        session_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        on_update: Optional[Callable[[ChatState], None]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.state = ChatState(session_id=session_id)
        self._client = client
        self._on_update = on_update

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self.state)

    def _show_reply(self, reply: str) -> None:
        messages = self.state.messages
        if messages and messages[-1].sender == "assistant":
            messages[-1] = ChatMessage(sender="assistant", text=reply)
        else:
            messages.append(ChatMessage(sender="assistant", text=reply))

    def _apply_init(self, payload: dict[str, Any]) -> None:
        if payload.get("ip"):
            self.state.client_ip = payload["ip"]
        # First writer wins: an id we already hold is never replaced.
        if payload.get("sessionId") and not self.state.session_id:
            self.state.session_id = payload["sessionId"]

    async def send(self, text: str) -> ChatState:
        """
        Send one message and consume its reply stream until ``done`` or
        until the server closes the connection.
        """
        message = (text or "").strip()
        if not message:
            return self.state

        self.state.messages.append(ChatMessage(sender="user", text=message))
        self.state.typing = True
        self._notify()

        body = {"message": message, "sessionId": self.state.session_id}
        client = self._client or httpx.AsyncClient(timeout=None)
        try:
            async with client.stream("POST", f"{self.base_url}/chat/stream", json=body) as response:
                if response.is_error:
                    logger.warning("Chat stream rejected with status %s", response.status_code)
                    self.state.messages.append(
                        ChatMessage(sender="assistant", text=SERVER_ERROR_TEXT)
                    )
                    self.state.typing = False
                    self._notify()
                    return self.state

                if await self._read_stream(response):
                    return self.state
        finally:
            if self._client is None:
                await client.aclose()

        self.state.typing = False
        self._notify()
        return self.state

    async def _read_stream(self, response: httpx.Response) -> bool:
        """
        Apply frames as they arrive. Returns True once ``done`` was seen;
        anything after it is left unread.
        """
        buffer = ""
        reply = ""
        async for chunk in response.aiter_text():
            buffer += chunk
            frames, buffer = extract_frames(buffer)
            for frame in frames:
                for payload in parse_frame(frame):
                    if payload.get("init"):
                        self._apply_init(payload)
                        self._notify()
                        continue

                    if payload.get("text"):
                        reply += payload["text"]
                        self._show_reply(reply)
                        self._notify()

                    if payload.get("done"):
                        self.state.typing = False
                        self._notify()
                        return True
        return False


__all__ = [
    "ChatMessage",
    "ChatState",
    "ChatStreamConsumer",
    "extract_frames",
    "parse_frame",
    "SERVER_ERROR_TEXT",
]
