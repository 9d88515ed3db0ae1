"""FastAPI dependencies shared by the HTTP routers."""

from fastapi import Request

from chatroom.realtime.coordinator import ChatCoordinator


def get_coordinator(request: Request) -> ChatCoordinator:
    """The coordinator built by create_app() for this application."""
    return request.app.state.coordinator
