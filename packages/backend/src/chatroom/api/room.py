"""Room snapshot endpoint — who is here and who is typing."""

from fastapi import APIRouter, Depends

from chatroom.api.dependencies import get_coordinator
from chatroom.realtime.coordinator import ChatCoordinator
from chatroom.schemas.room import RoomRead

router = APIRouter()


@router.get("/room", response_model=RoomRead)
async def get_room(coordinator: ChatCoordinator = Depends(get_coordinator)):
    """Live participants of the room.

    Connections that have not registered a display name yet are counted
    in ``connections`` but not listed.
    """
    return coordinator.snapshot()
