from types import SimpleNamespace

import pytest

from kai.errors import GatewayError
from kai.provider import google_sdk
from kai.provider.google_sdk import GeminiGateway


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate_content(self, *, model, contents):
        self.calls.append((model, contents))
        if self.error is not None:
            raise self.error
        return self.response


def _install_client(monkeypatch, models: FakeModels) -> list:
    created = []

    class FakeClient:
        def __init__(self, api_key):
            created.append(api_key)
            self.models = models

    monkeypatch.setattr(google_sdk.genai, "Client", FakeClient)
    return created


@pytest.mark.asyncio
async def test_generate_returns_reply_text(monkeypatch):
    models = FakeModels(response=SimpleNamespace(text="Bonjour!"))
    created = _install_client(monkeypatch, models)
    gateway = GeminiGateway("key-123", "gemini-2.0-flash")

    assert await gateway.generate("prompt one") == "Bonjour!"
    assert await gateway.generate("prompt two") == "Bonjour!"

    assert models.calls == [("gemini-2.0-flash", "prompt one"), ("gemini-2.0-flash", "prompt two")]
    # The SDK client is built once and reused.
    assert created == ["key-123"]


@pytest.mark.asyncio
async def test_missing_text_becomes_empty_reply(monkeypatch):
    _install_client(monkeypatch, FakeModels(response=SimpleNamespace(text=None)))

    assert await GeminiGateway("key", "m").generate("p") == ""


@pytest.mark.asyncio
async def test_sdk_failure_raises_gateway_error(monkeypatch):
    _install_client(monkeypatch, FakeModels(error=RuntimeError("429 quota")))

    with pytest.raises(GatewayError, match="429 quota"):
        await GeminiGateway("key", "m").generate("p")


@pytest.mark.asyncio
async def test_missing_api_key_raises_gateway_error():
    with pytest.raises(GatewayError, match="GEMINI_API_KEY"):
        await GeminiGateway(None, "m").generate("p")
