"""Socket.IO transport — wire-compatible with the React chat client.

Learn: python-socketio runs as an ASGI app in front of FastAPI (see
main.create_asgi_app). This module only translates Socket.IO primitives
into coordinator calls:

- connect     → coordinator.connect(sid) + start the connection's writer task
- <event>     → coordinator.dispatch(sid, event, payload)
- disconnect  → coordinator.disconnect(sid) + stop the writer task

Socket.IO itself enforces the CORS allow-list on the handshake
(``cors_allowed_origins``), handles pings and reconnects.
"""

import asyncio
from typing import Any, Optional

import socketio
import structlog

from chatroom.realtime.coordinator import ChatCoordinator, pump_outbound
from chatroom.realtime.events import INBOUND_EVENTS, OutboundEvent
from chatroom.realtime.registry import Connection

logger = structlog.get_logger()


class SocketIOGateway:
    """Binds one AsyncServer to a ChatCoordinator."""

    def __init__(self, coordinator: ChatCoordinator, settings):
        self.coordinator = coordinator
        origins = settings.cors_origins
        self.sio = socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins="*" if "*" in origins else list(origins),
            ping_interval=settings.ping_interval,
            ping_timeout=settings.ping_timeout,
            logger=False,
            engineio_logger=False,
        )
        self._writers: dict[str, asyncio.Task] = {}

        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        for name in INBOUND_EVENTS:
            self.sio.on(name, self._relay(name))

    # ─── Handlers ─────────────────────────────────────────

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None):
        conn = self.coordinator.connect(sid, transport="socketio")

        async def send(event: OutboundEvent) -> None:
            await self.sio.emit(event.name, event.payload(), to=sid)

        self._writers[sid] = asyncio.create_task(self._write(conn, send))

    async def on_disconnect(self, sid: str, reason: Optional[str] = None):
        self.coordinator.disconnect(sid)
        task = self._writers.pop(sid, None)
        if task is not None:
            task.cancel()
        if reason is not None:
            logger.debug("chat.socketio_disconnect_reason", connection_id=sid, reason=str(reason))

    async def _write(self, conn: Connection, send) -> None:
        """Writer task for one sid. A dead socket takes its connection out
        of the room instead of letting its queue fill up forever."""
        await pump_outbound(conn, send)
        # pump_outbound only returns after a failed send
        self._writers.pop(conn.id, None)
        self.coordinator.disconnect(conn.id)
        await self.sio.disconnect(conn.id)

    def _relay(self, name: str):
        async def handler(sid: str, *args: Any):
            data = args[0] if args else None
            self.coordinator.dispatch(sid, name, data)

        handler.__name__ = f"on_{name.replace(' ', '_')}"
        return handler

    # ─── Shutdown ─────────────────────────────────────────

    async def close(self) -> None:
        """Cancel every writer task (called from the app lifespan)."""
        tasks = list(self._writers.values())
        self._writers.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def active_writers(self) -> int:
        return len(self._writers)
