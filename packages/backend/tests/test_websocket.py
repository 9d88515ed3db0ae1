"""Plain WebSocket endpoint tests.

Learn: Starlette's TestClient drives the /ws endpoint over a real ASGI
connection. Frames from different sockets are handled concurrently on the
server, so tests use a ping → pong round-trip as a barrier whenever they
need one socket's earlier frames to have been processed.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from chatroom.main import create_app
from chatroom.realtime.websocket import origin_allowed

PONG = {"event": "pong", "data": {}}


def _sync(ws):
    ws.send_json({"event": "ping"})
    assert ws.receive_json() == PONG


def _join(ws, name):
    ws.send_json({"event": "register", "data": name})
    _sync(ws)


@pytest.fixture()
def ws_client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


def test_chat_message_reaches_both(ws_client):
    with ws_client.websocket_connect("/ws") as a, ws_client.websocket_connect("/ws") as b:
        _join(a, "alice")
        _join(b, "bob")

        a.send_json({"event": "chat message", "data": {"username": "alice", "message": "hi"}})

        expected = {"event": "chat message", "data": {"username": "alice", "message": "hi"}}
        assert a.receive_json() == expected
        assert b.receive_json() == expected


def test_typing_not_echoed_to_sender(ws_client):
    with ws_client.websocket_connect("/ws") as a, ws_client.websocket_connect("/ws") as b:
        _join(a, "alice")
        _join(b, "bob")

        a.send_json({"event": "typing"})
        assert b.receive_json() == {"event": "user typing", "data": {"username": "alice"}}

        # alice's next frame is the pong, not her own typing event
        _sync(a)


def test_invalid_json_frame(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {
            "event": "error",
            "data": {"event": "", "reason": "invalid_payload", "detail": "frame is not valid JSON"},
        }


def test_frame_without_event_name(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"data": "hello"})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["reason"] == "invalid_payload"


def test_unknown_event(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "dance", "data": {}})
        frame = ws.receive_json()
        assert frame["data"]["event"] == "dance"
        assert frame["data"]["reason"] == "unknown_event"


def test_connection_survives_rejected_frames(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "dance", "data": {}})
        ws.send_json({"event": "chat message", "data": "too early"})
        assert ws.receive_json()["data"]["reason"] == "unknown_event"
        assert ws.receive_json()["data"]["reason"] == "not_registered"

        _join(ws, "alice")
        ws.send_json({"event": "chat message", "data": "still here"})
        assert ws.receive_json() == {
            "event": "chat message",
            "data": {"username": "alice", "message": "still here"},
        }


def test_chat_before_register_rejected(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "chat message", "data": "hello"})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["reason"] == "not_registered"


def test_allowed_origin_accepted(ws_client):
    with ws_client.websocket_connect("/ws", headers={"origin": "http://localhost:5173"}) as ws:
        _sync(ws)


def test_disallowed_origin_rejected(ws_client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with ws_client.websocket_connect("/ws", headers={"origin": "http://evil.example"}):
            pass
    assert exc.value.code == 1008


def test_origin_allowed_rules():
    allowed = ["http://localhost:5173", "https://chat.example.com/"]
    assert origin_allowed(None, allowed)
    assert origin_allowed("http://localhost:5173", allowed)
    assert origin_allowed("https://chat.example.com", allowed)
    assert not origin_allowed("http://localhost:3000", allowed)
    assert origin_allowed("http://anything", ["*"])
