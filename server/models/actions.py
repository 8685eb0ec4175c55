"""
Inbound WebSocket actions for the UNO server.

Every client message is ``{"type": <ActionType>, ...payload}``. The action
set is closed: handlers.HANDLERS must cover every member of ActionType.
Payloads are validated with pydantic before a handler touches any state.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class ActionType(str, Enum):
    """All actions a client can send."""

    # Identity / lobby
    LOGIN = "login"
    LIST_ROOMS = "list_rooms"
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"

    # Game
    START_GAME = "start_game"
    PLAY_CARD = "play_card"
    DRAW_CARD = "draw_card"
    CALL_UNO = "call_uno"
    CHALLENGE_UNO = "challenge_uno"


class LoginPayload(BaseModel):
    name: str


class RoomPayload(BaseModel):
    """Payload for actions aimed at a room; defaults to the current room."""

    room_code: Optional[str] = None

    @field_validator("room_code", mode="before")
    @classmethod
    def _code_as_text(cls, value):
        # Codes are numeric, so clients may send them as numbers
        if value is None:
            return None
        return str(value).strip() or None


class PlayCardPayload(RoomPayload):
    hand_index: int
    chosen_color: Optional[str] = None


class ChallengePayload(RoomPayload):
    target_name: str
