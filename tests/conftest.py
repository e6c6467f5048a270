"""Shared pytest fixtures: recording transport, fake clock, Redis double, test app."""

import logging
import uuid
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest
from fastapi.testclient import TestClient

from notecollab.core.services import CollaborationHub, ITransport, WebSocketTransport
from notecollab.main import app
from notecollab.realtime import get_collaboration_hub, get_transport
from notecollab.security.jwt import create_access_token

logging.getLogger("notecollab").setLevel(logging.WARNING)

PALETTE = ["#111111", "#222222", "#333333"]


class RecordingTransport(ITransport):
    """In-memory transport that records every frame the hub sends."""

    def __init__(self):
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []
        self.closed: List[str] = []
        self.failing: Set[str] = set()

    def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
        if connection_id in self.failing:
            raise ConnectionError(f"{connection_id} is gone")
        self.sent.append((connection_id, event, payload))

    def close(self, connection_id: str) -> None:
        self.closed.append(connection_id)

    def events_for(self, connection_id: str, event: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            payload for cid, name, payload in self.sent
            if cid == connection_id and (event is None or name == event)
        ]

    def names_for(self, connection_id: str) -> List[str]:
        return [name for cid, name, _ in self.sent if cid == connection_id]

    def clear(self) -> None:
        self.sent.clear()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedisClient:
    """Stands in for the token blacklist store."""

    def __init__(self):
        self.blacklist: Set[str] = set()

    async def connect(self):
        pass

    async def disconnect(self):
        pass

    async def is_token_blacklisted(self, jti):
        return jti in self.blacklist


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Keep tests off a real Redis server."""
    fake = FakeRedisClient()
    from notecollab import main as main_module
    from notecollab.security import jwt as jwt_module

    monkeypatch.setattr(jwt_module, "get_redis_client", lambda: fake)
    monkeypatch.setattr(main_module, "get_redis_client", lambda: fake)
    return fake


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hub(transport, clock):
    """Hub wired to the recording transport with a deterministic palette."""
    return CollaborationHub(transport, palette=PALETTE, color_strategy="round_robin", clock=clock)


@pytest.fixture
def ws_transport():
    return WebSocketTransport(queue_size=32)


@pytest.fixture
def live_hub(ws_transport):
    return CollaborationHub(ws_transport, palette=PALETTE, color_strategy="round_robin")


@pytest.fixture
def test_app(live_hub, ws_transport):
    """App with a fresh hub per test."""
    app.dependency_overrides[get_collaboration_hub] = lambda: live_hub
    app.dependency_overrides[get_transport] = lambda: ws_transport
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Test client; the context keeps every websocket on one event loop."""
    with TestClient(test_app) as c:
        yield c


@pytest.fixture
def make_token():
    """Mint access tokens the way the notes API does."""

    def _make(sub: Optional[str] = None, **claims) -> str:
        return create_access_token({"sub": sub or str(uuid.uuid4()), **claims})

    return _make


@pytest.fixture
def auth_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}
