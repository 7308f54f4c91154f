from fastapi.testclient import TestClient

import kai.routes as routes
from kai.provider.google_sdk import GeminiGateway
from kai.routes import create_app
from tests.utils import InMemoryRedis, decode_frames, reply_text


def test_lifespan_opens_and_closes_the_shared_redis_handle(monkeypatch):
    fake = InMemoryRedis()
    monkeypatch.setattr(routes, "create_redis_client", lambda url: fake)

    app = create_app()
    with TestClient(app) as client:
        assert app.state.redis is fake
        assert isinstance(app.state.gateway, GeminiGateway)
        assert ("ping", "") in fake.calls

        # Real dependencies wired to the lifespan handle; served from cache.
        fake._data["cache:hello"] = "cached hello"
        resp = client.post("/chat/stream", json={"message": "Hello"})
        events = decode_frames(resp.content)
        assert reply_text(events) == "cached hello"
        assert events[-1] == {"done": True}

    assert fake.closed
