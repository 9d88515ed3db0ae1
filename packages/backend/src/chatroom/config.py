"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with CHATROOM_ prefix.
No YAML files and no file-based config, just env vars (12-factor app style).

Learn: The listen port also honours a bare PORT variable, which is what
most container platforms inject. CHATROOM_PORT wins when both are set.
"""

from typing import Literal

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via CHATROOM_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = Field(
        3000,
        validation_alias=AliasChoices("CHATROOM_PORT", "PORT"),
    )

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    # CORS: applies to HTTP, Socket.IO and the plain WebSocket handshake
    cors_origins: list[str] = [
        "http://localhost:5173",
        "https://rvzo-react-chat.vercel.app",
    ]
    cors_methods: list[str] = ["GET", "POST"]

    # Socket.IO transport
    socketio_path: str = "socket.io"
    ping_interval: int = 25  # seconds
    ping_timeout: int = 20  # seconds

    # Chat protocol
    max_name_length: int = 32
    max_message_length: int = 2000
    outbound_queue_size: int = 256  # events buffered per connection
    unregistered_policy: Literal["reject", "anonymous"] = "reject"
    anonymous_name: str = "Anonymous"
    unique_names: bool = False
    stop_typing_on_disconnect: bool = True

    model_config = {"env_prefix": "CHATROOM_", "populate_by_name": True}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Refuse a wildcard origin outside development."""
        if self.environment != "development" and "*" in self.cors_origins:
            raise ValueError(
                "CHATROOM_CORS_ORIGINS must list explicit origins in "
                "non-development environments (got '*')."
            )
        if self.outbound_queue_size < 1:
            raise ValueError("CHATROOM_OUTBOUND_QUEUE_SIZE must be at least 1")
        return self


# Singleton — import this everywhere
settings = Settings()
