"""
Shared pytest configuration and fixtures.

The FastAPI app is built with its Redis handle and generation gateway
replaced by in-memory doubles, so no external service is needed.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is importable for test modules.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from kai.deps import get_dispatcher, get_redis  # noqa: E402
from kai.routes import create_app  # noqa: E402
from kai.services.stream_dispatcher import StreamDispatcher  # noqa: E402
from kai.settings import DEFAULT_SYSTEM_PROMPT  # noqa: E402
from tests.utils import InMemoryRedis, ScriptedGateway, SleepRecorder  # noqa: E402


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def dispatcher(fake_redis, gateway, sleep_recorder) -> StreamDispatcher:
    return StreamDispatcher(
        fake_redis,
        gateway,
        system_prompt=DEFAULT_SYSTEM_PROMPT,
        sleep=sleep_recorder,
    )


@pytest.fixture
def app(fake_redis, dispatcher):
    app = create_app()

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    return app


@pytest.fixture
def client(app) -> TestClient:
    # Not used as a context manager: the lifespan (real Redis) is skipped.
    return TestClient(app)
