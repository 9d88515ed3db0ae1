"""Test fixtures — isolated apps and coordinators per test.

Learn: create_app() builds a fresh ChatCoordinator every call, so each test
gets an empty room. Coordinator-level tests don't need an app at all: they
connect fake connection ids and read what landed in each connection's
outbound queue.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chatroom.config import Settings
from chatroom.main import create_app
from chatroom.realtime.coordinator import ChatCoordinator


@pytest.fixture()
def settings():
    """Development settings with a single allowed browser origin."""
    return Settings(
        environment="development",
        cors_origins=["http://localhost:5173"],
        cors_methods=["GET", "POST"],
        log_level="WARNING",
    )


@pytest.fixture()
def coordinator():
    return ChatCoordinator()


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client talking to the FastAPI app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def drain(conn):
    """Pop everything queued for a connection, oldest first."""
    events = []
    while not conn.outbox.empty():
        events.append(conn.outbox.get_nowait())
    return events


@pytest.fixture(name="drain")
def drain_fixture():
    return drain


@pytest.fixture()
def room(coordinator):
    """Connect and register participants: ``a, b = room("alice", "bob")``."""

    def _room(*names):
        conns = []
        for i, name in enumerate(names):
            conn = coordinator.connect(f"conn-{i}")
            coordinator.dispatch(conn.id, "register", name)
            conns.append(conn)
        return conns

    return _room
