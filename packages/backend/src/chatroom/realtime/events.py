"""Chat protocol events — tagged variants with a fixed schema per name.

Learn: The wire protocol is a handful of *named* events. Inbound events
(client → server) are parsed into a pydantic discriminated union keyed on
the event name, so every handler receives a typed object and malformed
payloads are rejected here, at the boundary, before anything is
broadcast.

Inbound:   register · typing · stop typing · chat message
Outbound:  chat message · user typing · user stopped typing · error

Socket.IO clients send the payload as the event argument; plain WebSocket
clients wrap it in a JSON envelope ``{"event": ..., "data": ...}``. Both
end up in ``parse_inbound(name, data)``.
"""

from typing import Annotated, Any, ClassVar, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from chatroom.errors import ProtocolError, UnknownEventError

REGISTER = "register"
TYPING = "typing"
STOP_TYPING = "stop typing"
CHAT_MESSAGE = "chat message"

USER_TYPING = "user typing"
USER_STOPPED_TYPING = "user stopped typing"
ERROR = "error"

INBOUND_EVENTS = (REGISTER, TYPING, STOP_TYPING, CHAT_MESSAGE)

# Used when validation runs without a context (e.g. direct model construction)
DEFAULT_MAX_NAME_LENGTH = 32
DEFAULT_MAX_MESSAGE_LENGTH = 2000


def _limit(info: ValidationInfo, key: str, default: int) -> int:
    if info.context and key in info.context:
        return info.context[key]
    return default


# ─── Inbound ──────────────────────────────────────────────


class Register(BaseModel):
    event: Literal["register"] = REGISTER
    name: str = Field(validation_alias=AliasChoices("name", "username"))

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str, info: ValidationInfo) -> str:
        value = value.strip()
        if not value:
            raise ValueError("display name must not be empty")
        limit = _limit(info, "max_name_length", DEFAULT_MAX_NAME_LENGTH)
        if len(value) > limit:
            raise ValueError(f"display name longer than {limit} characters")
        return value


class Typing(BaseModel):
    event: Literal["typing"] = TYPING


class StopTyping(BaseModel):
    event: Literal["stop typing"] = STOP_TYPING


class ChatMessage(BaseModel):
    """Inbound chat message.

    ``username`` is what the client claims; the coordinator replaces it
    with the name bound to the sending connection.
    """

    event: Literal["chat message"] = CHAT_MESSAGE
    username: Optional[str] = None
    message: str

    @field_validator("message")
    @classmethod
    def check_message(cls, value: str, info: ValidationInfo) -> str:
        if not value.strip():
            raise ValueError("message must not be empty")
        limit = _limit(info, "max_message_length", DEFAULT_MAX_MESSAGE_LENGTH)
        if len(value) > limit:
            raise ValueError(f"message longer than {limit} characters")
        return value


InboundEvent = Annotated[
    Union[Register, Typing, StopTyping, ChatMessage],
    Field(discriminator="event"),
]

_inbound_adapter = TypeAdapter(InboundEvent)


def _normalize(name: str, data: Any) -> dict[str, Any]:
    """Shape a raw payload into the dict the tagged union expects."""
    if name in (TYPING, STOP_TYPING):
        # Payload-less events: whatever the client sent is ignored
        return {"event": name}
    if isinstance(data, str):
        key = "name" if name == REGISTER else "message"
        return {"event": name, key: data}
    if isinstance(data, dict):
        return {**data, "event": name}
    raise ProtocolError(name, f"expected a string or an object, got {type(data).__name__}")


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"] if p not in INBOUND_EVENTS)
        msg = err["msg"].removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def parse_inbound(
    name: str,
    data: Any = None,
    *,
    max_name_length: int = DEFAULT_MAX_NAME_LENGTH,
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
) -> Union[Register, Typing, StopTyping, ChatMessage]:
    """Validate one inbound event.

    Raises UnknownEventError for names outside the protocol and
    ProtocolError for payloads that do not match the event's schema.
    """
    if name not in INBOUND_EVENTS:
        raise UnknownEventError(str(name), "event is not part of the chat protocol")

    raw = _normalize(name, data)
    try:
        return _inbound_adapter.validate_python(
            raw,
            context={
                "max_name_length": max_name_length,
                "max_message_length": max_message_length,
            },
        )
    except ValidationError as e:
        raise ProtocolError(name, _describe(e)) from e


# ─── Outbound ─────────────────────────────────────────────


class OutboundEvent(BaseModel):
    """Base for server → client events. ``name`` is the wire event name."""

    name: ClassVar[str]

    model_config = {"frozen": True}

    def payload(self) -> dict[str, Any]:
        return self.model_dump()

    def envelope(self) -> dict[str, Any]:
        """JSON frame used by the plain WebSocket transport."""
        return {"event": self.name, "data": self.payload()}


class ChatMessageOut(OutboundEvent):
    name: ClassVar[str] = CHAT_MESSAGE
    username: str
    message: str


class UserTyping(OutboundEvent):
    name: ClassVar[str] = USER_TYPING
    username: str


class UserStoppedTyping(OutboundEvent):
    name: ClassVar[str] = USER_STOPPED_TYPING
    username: str


class ErrorNotice(OutboundEvent):
    name: ClassVar[str] = ERROR
    event: str
    reason: str
    detail: str

    @classmethod
    def from_error(cls, exc: ProtocolError) -> "ErrorNotice":
        return cls(**exc.to_notice())
