"""Health check endpoint.

Learn: There are no external dependencies to check (no database, no
broker), so health is simply "the process answers" plus the number of
live connections as a cheap liveness signal for the real-time side.
"""

from fastapi import APIRouter, Depends

from chatroom import __version__
from chatroom.api.dependencies import get_coordinator
from chatroom.realtime.coordinator import ChatCoordinator
from chatroom.schemas.room import HealthRead

router = APIRouter()


@router.get("/health", response_model=HealthRead)
async def health_check(coordinator: ChatCoordinator = Depends(get_coordinator)):
    """Check server health."""
    return {
        "status": "healthy",
        "server": "ok",
        "version": __version__,
        "connections": len(coordinator.registry),
    }
