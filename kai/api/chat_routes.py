from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import StreamingResponse

from kai.client_ip import extract_client_ip
from kai.deps import get_dispatcher
from kai.errors import MessageRequiredError
from kai.logging_config import logger
from kai.models import ChatStreamRequest
from kai.services.stream_dispatcher import CancellationToken, StreamDispatcher

router = APIRouter(tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/chat/stream")
async def chat_stream(
    request: Request,
    payload: ChatStreamRequest | None = Body(default=None),
    dispatcher: StreamDispatcher = Depends(get_dispatcher),
) -> StreamingResponse:
    """
    Stream one chat turn as Server-Sent Events.

    The first frame carries the session id the turn was recorded under,
    so a client that sent none can adopt the one issued here.
    """
    if payload is None or not payload.message:
        raise MessageRequiredError()

    session_id = dispatcher.resolve_session_id(payload.session_id)
    client_ip = extract_client_ip(request)
    logger.info(
        "chat: incoming session=%s new_session=%s ip=%s message_chars=%d",
        session_id,
        payload.session_id is None,
        client_ip,
        len(payload.message),
    )

    token = CancellationToken()

    async def _event_stream() -> AsyncIterator[bytes]:
        try:
            async for frame in dispatcher.stream_turn(
                payload.message, session_id, client_ip, token=token
            ):
                yield frame
        finally:
            # Reached on normal completion and when the client disconnects.
            token.cancel()

    return StreamingResponse(
        _event_stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


__all__ = ["router"]
