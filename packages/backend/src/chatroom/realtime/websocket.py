"""Plain WebSocket endpoint — the chat protocol without Socket.IO.

Learn: Clients that don't want a Socket.IO library connect to /ws and
exchange JSON text frames shaped like ``{"event": <name>, "data": <payload>}``
in both directions. Event names and payloads are exactly the Socket.IO
ones; ``{"event": "ping"}`` gets a ``pong`` back.

Two concurrent tasks run per connection:
1. Writer — drains the connection's outbound queue into the socket
2. Client listener — reads frames and hands them to the coordinator

When either side finishes (usually a client disconnect), the other is
cancelled and the connection leaves the registry.
"""

import asyncio
import json
import uuid
from typing import ClassVar, Optional

import structlog
from fastapi import APIRouter, WebSocket, status
from starlette.websockets import WebSocketState

from chatroom.realtime.coordinator import pump_outbound
from chatroom.realtime.events import ErrorNotice, OutboundEvent

logger = structlog.get_logger()
router = APIRouter()


class Pong(OutboundEvent):
    name: ClassVar[str] = "pong"


def origin_allowed(origin: Optional[str], allowed: list[str]) -> bool:
    """Browsers always send Origin on a WebSocket handshake; other
    clients usually don't, and CORS doesn't apply to them."""
    if origin is None or "*" in allowed:
        return True
    return origin.rstrip("/") in {o.rstrip("/") for o in allowed}


def _bad_frame(detail: str) -> ErrorNotice:
    return ErrorNotice(event="", reason="invalid_payload", detail=detail)


@router.websocket("/ws")
async def chat_websocket(websocket: WebSocket):
    """WebSocket endpoint for the chat room."""
    settings = websocket.app.state.settings
    coordinator = websocket.app.state.coordinator

    # ── Origin allow-list ───────────────────────────────────
    origin = websocket.headers.get("origin")
    if not origin_allowed(origin, settings.cors_origins):
        logger.warning("chat.origin_rejected", origin=origin)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Origin not allowed")
        return

    # ── Connection accepted ─────────────────────────────────
    await websocket.accept()

    connection_id = uuid.uuid4().hex
    conn = coordinator.connect(connection_id, transport="websocket")

    async def send(event: OutboundEvent) -> None:
        await websocket.send_json(event.envelope())

    async def client_listener():
        """Read frames until the client goes away."""
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

            text = message.get("text")
            if text is None:
                coordinator.send(connection_id, _bad_frame("binary frames are not supported"))
                continue
            try:
                frame = json.loads(text)
            except json.JSONDecodeError:
                coordinator.send(connection_id, _bad_frame("frame is not valid JSON"))
                continue
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                coordinator.send(connection_id, _bad_frame("frame must be an object with an 'event' name"))
                continue

            if frame["event"] == "ping":
                coordinator.send(connection_id, Pong())
                continue

            coordinator.dispatch(connection_id, frame["event"], frame.get("data"))

    writer_task = asyncio.create_task(pump_outbound(conn, send))
    client_task = asyncio.create_task(client_listener())

    try:
        # Wait for either to finish (usually client disconnect)
        done, _ = await asyncio.wait(
            [writer_task, client_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning(
                    "chat.websocket_error",
                    connection_id=connection_id,
                    error=str(task.exception()),
                )
    finally:
        writer_task.cancel()
        client_task.cancel()
        coordinator.disconnect(connection_id)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
