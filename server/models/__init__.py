"""Wire protocol models for the UNO server."""

from .actions import ActionType, ChallengePayload, LoginPayload, PlayCardPayload, RoomPayload
from .events import EventType

__all__ = [
    "ActionType",
    "ChallengePayload",
    "LoginPayload",
    "PlayCardPayload",
    "RoomPayload",
    "EventType",
]
