"""
Generation gateway backed by the official google-genai SDK.

The SDK client is synchronous, so calls run on a worker thread to keep the
event loop free while a reply is being generated.
"""

from __future__ import annotations

from typing import Any, Optional

import anyio
from google import genai

from kai.errors import GatewayError
from kai.logging_config import logger


def _create_client(api_key: Optional[str]):
    if not api_key:
        raise GatewayError("GEMINI_API_KEY is not configured")

    try:
        return genai.Client(api_key=api_key)
    except Exception as exc:
        raise GatewayError(f"Failed to initialise google-genai client: {exc}") from exc


def _response_text(response: Any) -> str:
    text = getattr(response, "text", None)
    if callable(text):
        text = text()
    return text or ""


class GeminiGateway:
    """
    Prompt in, reply text out. No retry and no timeout are applied here;
    every failure surfaces as GatewayError.
    """

    def __init__(self, api_key: Optional[str], model_id: str) -> None:
        self.api_key = api_key
        self.model_id = model_id
        self._client = None

    def _get_client(self):
        if self._client is None:
            self._client = _create_client(self.api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        client = self._get_client()

        def _call():
            return client.models.generate_content(model=self.model_id, contents=prompt)

        try:
            response = await anyio.to_thread.run_sync(_call)
        except Exception as exc:
            raise GatewayError(f"google-genai generate_content failed: {exc}") from exc

        reply = _response_text(response)
        logger.debug(
            "Gemini reply received: model=%s prompt_chars=%d reply_chars=%d",
            self.model_id,
            len(prompt),
            len(reply),
        )
        return reply


__all__ = ["GeminiGateway"]
