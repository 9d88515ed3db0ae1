"""Application factory.

Learn: create_app() returns a configured FastAPI instance with its own
ChatCoordinator on ``app.state``. There is no module-level hub, so tests
can build as many isolated apps as they like. create_asgi_app() puts the
Socket.IO server in front of it: requests under /socket.io/ go to
python-socketio, everything else (HTTP API, /ws) falls through to FastAPI.

Lifespan logs startup/shutdown and stops the Socket.IO writer tasks.
"""

from contextlib import asynccontextmanager
from typing import Optional

import socketio
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatroom import __version__
from chatroom.api import api_router
from chatroom.config import Settings
from chatroom.config import settings as default_settings
from chatroom.logging_config import configure_logging
from chatroom.realtime.coordinator import ChatCoordinator
from chatroom.realtime.socketio import SocketIOGateway

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, settings.log_format)
    logger.info(
        "chatroom.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        cors_origins=settings.cors_origins,
        unregistered_policy=settings.unregistered_policy,
    )

    yield

    logger.info("chatroom.shutdown", connections=len(app.state.coordinator.registry))
    await app.state.gateway.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application and its coordinator."""
    settings = settings or default_settings

    app = FastAPI(
        title="Chatroom",
        description="Single-room real-time group chat",
        version=__version__,
        lifespan=lifespan,
    )

    coordinator = ChatCoordinator.from_settings(settings)
    app.state.settings = settings
    app.state.coordinator = coordinator
    app.state.gateway = SocketIOGateway(coordinator, settings)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from chatroom.middleware.request_id import RequestIdMiddleware
    from chatroom.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=settings.cors_methods,
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    from chatroom.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


def create_asgi_app(settings: Optional[Settings] = None) -> socketio.ASGIApp:
    """FastAPI app wrapped by the Socket.IO ASGI app."""
    settings = settings or default_settings
    api = create_app(settings)
    return socketio.ASGIApp(
        api.state.gateway.sio,
        other_asgi_app=api,
        socketio_path=settings.socketio_path,
    )


# Default app instance (used by uvicorn: chatroom.main:app)
app = create_asgi_app()
