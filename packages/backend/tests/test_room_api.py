"""Room snapshot endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_empty_room(client):
    resp = await client.get("/api/v1/room")
    assert resp.status_code == 200
    assert resp.json() == {"connections": 0, "participants": [], "typing": []}


@pytest.mark.asyncio
async def test_room_lists_registered_participants(client, app):
    coordinator = app.state.coordinator
    coordinator.connect("c1", transport="socketio")
    coordinator.connect("c2", transport="websocket")
    coordinator.connect("c3")
    coordinator.dispatch("c1", "register", "alice")
    coordinator.dispatch("c2", "register", "bob")
    coordinator.dispatch("c2", "typing")

    resp = await client.get("/api/v1/room")

    data = resp.json()
    assert data["connections"] == 3
    assert [p["username"] for p in data["participants"]] == ["alice", "bob"]
    assert [p["transport"] for p in data["participants"]] == ["socketio", "websocket"]
    assert data["participants"][1]["typing"] is True
    assert "connected_at" in data["participants"][0]
    assert data["typing"] == ["bob"]


@pytest.mark.asyncio
async def test_room_forgets_disconnected(client, app):
    coordinator = app.state.coordinator
    coordinator.connect("c1")
    coordinator.dispatch("c1", "register", "alice")
    coordinator.disconnect("c1")

    resp = await client.get("/api/v1/room")

    assert resp.json()["participants"] == []
