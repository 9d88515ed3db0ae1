"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.
Every route is open; the room has no authentication.
"""

from fastapi import APIRouter

from chatroom.api.health import router as health_router
from chatroom.api.room import router as room_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(room_router, tags=["room"])
