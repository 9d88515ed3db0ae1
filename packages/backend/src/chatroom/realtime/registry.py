"""Connection registry — who is connected and what they are called.

Learn: The registry is the only shared mutable state in the server. It maps
a transport-assigned connection id to a ``Connection`` holding the bound
display name, the typing flag and the connection's outbound queue.

Every method is synchronous and never awaits, so under asyncio each call
runs to completion before any other handler gets scheduled. That is the
whole concurrency story: no lock as long as everything runs on one event
loop. Calling it from worker threads would need one.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, Optional

from chatroom.errors import DuplicateConnectionError, UnknownConnectionError


@dataclass(eq=False)
class Connection:
    """One live client session."""

    id: str
    transport: str
    outbox: asyncio.Queue
    name: Optional[str] = None
    # Name the last `user typing` went out under; None when not typing
    typing_as: Optional[str] = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def registered(self) -> bool:
        return self.name is not None

    @property
    def typing(self) -> bool:
        return self.typing_as is not None


class ConnectionRegistry:
    """In-memory map of connection id → Connection."""

    def __init__(self, outbound_queue_size: int = 256):
        self.outbound_queue_size = outbound_queue_size
        self._connections: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __iter__(self) -> Iterator[Connection]:
        return iter(self.connections())

    # ─── Live set ─────────────────────────────────────────

    def add(self, connection_id: str, transport: str = "socketio") -> Connection:
        """Enter a freshly accepted connection into the live set (Unregistered)."""
        if connection_id in self._connections:
            raise DuplicateConnectionError(f"Connection {connection_id} is already live")
        conn = Connection(
            id=connection_id,
            transport=transport,
            outbox=asyncio.Queue(maxsize=self.outbound_queue_size),
        )
        self._connections[connection_id] = conn
        return conn

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def connections(self) -> list[Connection]:
        """Snapshot of live connections, in connect order."""
        return list(self._connections.values())

    def remove(self, connection_id: str) -> Optional[Connection]:
        """Discard all state for a connection. No-op if already gone."""
        return self._connections.pop(connection_id, None)

    # ─── Identity ─────────────────────────────────────────

    def bind(self, connection_id: str, display_name: str) -> None:
        """Bind a display name to a connection. Last write wins."""
        conn = self._connections.get(connection_id)
        if conn is None:
            raise UnknownConnectionError(connection_id)
        conn.name = display_name

    def lookup(self, connection_id: str) -> Optional[str]:
        """Display name bound to a connection, or None if unset/unknown."""
        conn = self._connections.get(connection_id)
        return conn.name if conn else None

    def name_in_use(self, display_name: str, exclude: Optional[str] = None) -> bool:
        """Case-insensitive check against every other live connection."""
        wanted = display_name.casefold()
        return any(
            conn.name is not None and conn.name.casefold() == wanted
            for conn in self._connections.values()
            if conn.id != exclude
        )

    # ─── Typing state ─────────────────────────────────────

    def set_typing(self, connection_id: str, username: Optional[str]) -> Optional[str]:
        """Record the name a typing indicator was shown under (None clears it).

        Returns the name previously recorded, so a stop-typing can clear the
        indicator the others actually saw even after a rename.
        """
        conn = self._connections.get(connection_id)
        if conn is None:
            raise UnknownConnectionError(connection_id)
        previous = conn.typing_as
        conn.typing_as = username
        return previous
