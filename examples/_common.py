"""
Shared helpers for chatroom examples.

Checks the server is up and builds Socket.IO clients that print every
event they receive, so each example can focus on its conversation.

Requires the examples extra:  pip install -e ".[examples]"
"""

import os
import sys

import httpx
import socketio

BASE = os.environ.get("CHATROOM_API_URL", "http://localhost:3000").rstrip("/")


def check_backend() -> None:
    """Verify the chat server is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/api/v1/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Chat server not reachable at {BASE}")
        print("Start it with:  chatroom serve")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print(f"Server {BASE}: {health['status']} (v{health['version']}), "
          f"{health['connections']} connection(s)")


def make_client(label: str, inbox: list) -> socketio.AsyncClient:
    """Socket.IO client that records and prints every chat event it gets."""
    sio = socketio.AsyncClient()

    def recorder(event):
        async def record(data):
            inbox.append((event, data))
            print(f"  [{label}] <- {event}: {data}")
        return record

    for event in ("chat message", "user typing", "user stopped typing", "error"):
        sio.on(event, recorder(event))

    return sio


def room_snapshot() -> dict:
    resp = httpx.get(f"{BASE}/api/v1/room", timeout=5)
    resp.raise_for_status()
    return resp.json()
