"""
Rooms API router.

Read-only HTTP view of the lobby, for clients that want the room list
before opening a WebSocket.
"""

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


class RoomSummaryResponse(BaseModel):
    """One joinable room."""
    room_code: str
    owner: Optional[str] = None
    players: list[str]
    player_count: int
    status: str


@router.get("", response_model=list[RoomSummaryResponse])
async def list_rooms(request: Request):
    """List rooms waiting for players that still have free seats."""
    return await request.app.state.registry.list_available_rooms()
