"""Broadcast coordinator — the real-time hub of the chat room.

Learn: Transports (Socket.IO, plain WebSocket) only know how to accept,
receive, send and close. Everything protocol-related happens here:

1. ``connect()`` / ``disconnect()`` keep the registry's live set current
2. ``dispatch()`` validates an inbound event and applies it
3. ``broadcast()`` fans an outbound event to every live connection,
   optionally excluding one (the sender)

Fan-out never awaits. Each target connection has a bounded outbound
queue and ``broadcast`` only does ``put_nowait``; a per-connection writer
task (``pump_outbound``) drains the queue into the transport. A slow or
dead client fills its own queue and starts dropping events; nobody else
notices. Per-sender ordering is preserved because each queue is FIFO and
handlers run to completion in arrival order.

Fan-out policy:
    chat message          → everyone, sender included (one rendering path)
    user typing / stopped → everyone except the sender
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Union

import structlog

from chatroom.errors import NameTakenError, NotRegisteredError, ProtocolError
from chatroom.realtime.events import (
    ChatMessage,
    ChatMessageOut,
    ErrorNotice,
    OutboundEvent,
    Register,
    StopTyping,
    Typing,
    UserStoppedTyping,
    UserTyping,
    parse_inbound,
)
from chatroom.realtime.registry import Connection, ConnectionRegistry

logger = structlog.get_logger()

SendFn = Callable[[OutboundEvent], Awaitable[None]]


class ChatCoordinator:
    """Owns the connection registry and the fan-out policy for the room."""

    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        *,
        unregistered_policy: str = "reject",
        anonymous_name: str = "Anonymous",
        unique_names: bool = False,
        stop_typing_on_disconnect: bool = True,
        max_name_length: int = 32,
        max_message_length: int = 2000,
    ):
        if unregistered_policy not in ("reject", "anonymous"):
            raise ValueError(f"Invalid unregistered policy: {unregistered_policy}")
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.unregistered_policy = unregistered_policy
        self.anonymous_name = anonymous_name
        self.unique_names = unique_names
        self.stop_typing_on_disconnect = stop_typing_on_disconnect
        self.max_name_length = max_name_length
        self.max_message_length = max_message_length

    @classmethod
    def from_settings(cls, settings) -> "ChatCoordinator":
        return cls(
            ConnectionRegistry(outbound_queue_size=settings.outbound_queue_size),
            unregistered_policy=settings.unregistered_policy,
            anonymous_name=settings.anonymous_name,
            unique_names=settings.unique_names,
            stop_typing_on_disconnect=settings.stop_typing_on_disconnect,
            max_name_length=settings.max_name_length,
            max_message_length=settings.max_message_length,
        )

    # ─── Connection lifecycle ─────────────────────────────

    def connect(self, connection_id: str, transport: str = "socketio") -> Connection:
        conn = self.registry.add(connection_id, transport)
        logger.info(
            "chat.connected",
            connection_id=connection_id,
            transport=transport,
            connections=len(self.registry),
        )
        return conn

    def disconnect(self, connection_id: str) -> Optional[Connection]:
        """Drop a connection. Safe to call more than once.

        If the client vanished mid-typing, the others get an implicit
        ``user stopped typing`` so their indicator does not go stale.
        """
        conn = self.registry.remove(connection_id)
        if conn is None:
            return None

        if conn.typing_as is not None and self.stop_typing_on_disconnect:
            self.broadcast(UserStoppedTyping(username=conn.typing_as))

        logger.info(
            "chat.disconnected",
            connection_id=connection_id,
            username=conn.name,
            connections=len(self.registry),
        )
        return conn

    # ─── Inbound events ───────────────────────────────────

    def dispatch(self, connection_id: str, event: str, data: Any = None) -> None:
        """Validate and apply one raw inbound event.

        Protocol errors are answered with an ``error`` event to the sender
        only; nothing is broadcast for a rejected event.
        """
        if connection_id not in self.registry:
            logger.warning(
                "chat.unknown_connection", connection_id=connection_id, event_name=event
            )
            return

        try:
            parsed = parse_inbound(
                event,
                data,
                max_name_length=self.max_name_length,
                max_message_length=self.max_message_length,
            )
            self.handle(connection_id, parsed)
        except ProtocolError as e:
            logger.info(
                "chat.rejected",
                connection_id=connection_id,
                event_name=e.event,
                reason=e.reason,
                detail=e.detail,
            )
            self.send(connection_id, ErrorNotice.from_error(e))

    def handle(
        self,
        connection_id: str,
        event: Union[Register, Typing, StopTyping, ChatMessage],
    ) -> None:
        """Apply an already-validated inbound event. Raises ProtocolError."""
        if isinstance(event, Register):
            self.register(connection_id, event.name)
        elif isinstance(event, Typing):
            self.typing(connection_id)
        elif isinstance(event, StopTyping):
            self.stop_typing(connection_id)
        elif isinstance(event, ChatMessage):
            self.chat_message(connection_id, event)
        else:
            raise TypeError(f"Unhandled event type: {type(event).__name__}")

    def register(self, connection_id: str, name: str) -> None:
        if self.unique_names and self.registry.name_in_use(name, exclude=connection_id):
            raise NameTakenError("register", f"display name '{name}' is already in use")

        previous = self.registry.lookup(connection_id)
        self.registry.bind(connection_id, name)
        logger.info(
            "chat.registered",
            connection_id=connection_id,
            username=name,
            previous=previous,
        )

    def typing(self, connection_id: str) -> int:
        username = self._sender_name(connection_id, "typing")
        self.registry.set_typing(connection_id, username)
        return self.broadcast(UserTyping(username=username), exclude=connection_id)

    def stop_typing(self, connection_id: str) -> int:
        username = self._sender_name(connection_id, "stop typing")
        shown_as = self.registry.set_typing(connection_id, None)
        if shown_as is not None:
            # Clear the indicator under the name the others saw
            username = shown_as
        return self.broadcast(UserStoppedTyping(username=username), exclude=connection_id)

    def chat_message(self, connection_id: str, event: ChatMessage) -> int:
        username = self._sender_name(connection_id, "chat message")
        if event.username is not None and event.username != username:
            logger.warning(
                "chat.username_mismatch",
                connection_id=connection_id,
                claimed=event.username,
                username=username,
            )
        logger.info(
            "chat.message",
            connection_id=connection_id,
            username=username,
            length=len(event.message),
        )
        return self.broadcast(ChatMessageOut(username=username, message=event.message))

    def _sender_name(self, connection_id: str, event: str) -> str:
        name = self.registry.lookup(connection_id)
        if name is not None:
            return name
        if self.unregistered_policy == "anonymous":
            return self.anonymous_name
        raise NotRegisteredError(event, "send 'register' with a display name first")

    # ─── Outbound ─────────────────────────────────────────

    def broadcast(self, event: OutboundEvent, exclude: Optional[str] = None) -> int:
        """Enqueue an event for every live connection except ``exclude``.

        Returns the number of connections the event was queued for.
        """
        delivered = 0
        for conn in self.registry.connections():
            if conn.id == exclude:
                continue
            if self._enqueue(conn, event):
                delivered += 1
        return delivered

    def send(self, connection_id: str, event: OutboundEvent) -> bool:
        """Enqueue an event for a single connection."""
        conn = self.registry.get(connection_id)
        if conn is None:
            return False
        return self._enqueue(conn, event)

    def _enqueue(self, conn: Connection, event: OutboundEvent) -> bool:
        try:
            conn.outbox.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "chat.outbound_dropped",
                connection_id=conn.id,
                event_name=event.name,
                queue_size=conn.outbox.maxsize,
            )
            return False
        return True

    # ─── Introspection ────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """Current room state for the HTTP API. Unregistered connections
        are counted but not listed."""
        participants = [
            {
                "username": conn.name,
                "typing": conn.typing,
                "transport": conn.transport,
                "connected_at": conn.connected_at,
            }
            for conn in self.registry.connections()
            if conn.registered
        ]
        return {
            "connections": len(self.registry),
            "participants": participants,
            "typing": [p["username"] for p in participants if p["typing"]],
        }


async def pump_outbound(connection: Connection, send: SendFn) -> None:
    """Drain a connection's outbound queue into its transport until cancelled.

    A failed send ends the pump for this connection only. Returning is the
    transport's cue to take the connection out of the room.
    """
    while True:
        event = await connection.outbox.get()
        try:
            await send(event)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "chat.send_failed",
                connection_id=connection.id,
                event_name=event.name,
            )
            return
