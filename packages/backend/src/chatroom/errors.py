"""Domain exceptions for the chat server.

Learn: Client-caused problems (bad payloads, chatting before registering,
a taken name) are ProtocolErrors. They carry a short machine-readable
``reason`` and turn into an ``error`` event sent back to the offending
connection only and are never broadcast to the room.

Registry errors (unknown / duplicate connection ids) are programming
errors in a transport adapter and propagate normally.
"""

from typing import Any, Optional


class ChatroomError(Exception):
    """Base class for all chatroom errors."""


# ─── Protocol errors (answered with an `error` event) ─────


class ProtocolError(ChatroomError):
    """Raised when an inbound event cannot be accepted."""

    reason = "invalid_payload"

    def __init__(self, event: str, detail: str, reason: Optional[str] = None):
        super().__init__(f"{event}: {detail}")
        self.event = event
        self.detail = detail
        if reason is not None:
            self.reason = reason

    def to_notice(self) -> dict[str, Any]:
        """Payload for the `error` event sent back to the sender."""
        return {"event": self.event, "reason": self.reason, "detail": self.detail}


class UnknownEventError(ProtocolError):
    """Raised when a client sends an event name the server does not handle."""

    reason = "unknown_event"


class NotRegisteredError(ProtocolError):
    """Raised when an unregistered connection chats or types."""

    reason = "not_registered"


class NameTakenError(ProtocolError):
    """Raised when a display name is already bound to another connection."""

    reason = "name_taken"


# ─── Registry errors ──────────────────────────────────────


class UnknownConnectionError(ChatroomError, KeyError):
    """Raised when operating on a connection id that is not live."""


class DuplicateConnectionError(ChatroomError):
    """Raised when a transport reuses a connection id that is still live."""
