"""
Outbound WebSocket events for the UNO server.

Unless noted, events are sent to every member of a room. Events carrying a
``game_state`` are built per recipient so that each player only ever sees
their own hand.
"""

from enum import Enum


class EventType(str, Enum):
    """All event types the server sends."""

    # Identity / lobby
    LOGIN_SUCCESS = "login_success"      # unicast
    ROOMS_LIST = "rooms_list"            # unicast
    ROOMS_UPDATED = "rooms_updated"      # every connection: lobby changed
    ROOM_CREATED = "room_created"        # unicast, to the creator
    ROOM_JOINED = "room_joined"          # unicast, to the joiner
    ROOM_UPDATED = "room_updated"        # roster/status change

    # Game
    GAME_STARTED = "game_started"        # per-recipient state
    GAME_STATE = "game_state"            # per-recipient state
    CARD_DRAWN = "card_drawn"            # unicast, to the drawer
    PLAYER_DREW_CARD = "player_drew_card"
    UNO_CALLED = "uno_called"
    CHALLENGE_RESULT = "challenge_result"
    GAME_OVER = "game_over"

    ERROR = "error"                      # unicast
