"""
Caller-contract errors for UNO rooms and games.

Every failure a client can provoke (wrong turn, illegal card, full room, ...)
is a GameError subclass. They are raised before any state is mutated, so a
failed operation never changes the room. The gateway turns them into a
unicast ``error`` message using ``code`` and ``message``.
"""


class GameError(Exception):
    """Base class for recoverable, client-caused errors."""

    default_message = "Invalid action"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"type": "error", "code": self.code, "message": self.message}


# --- Registry / membership ---------------------------------------------------

class RoomNotFound(GameError):
    default_message = "Room not found"


class RoomNotJoinable(GameError):
    default_message = "Game already in progress"


class RoomFull(GameError):
    default_message = "Room is full"


class AlreadyInRoom(GameError):
    default_message = "Already in a room"


class NotInRoom(GameError):
    default_message = "Not in a room"


# --- Game lifecycle ----------------------------------------------------------

class NotOwner(GameError):
    default_message = "Only the room owner can start the game"


class NotEnoughPlayers(GameError):
    default_message = "Need at least 2 players"


class GameAlreadyStarted(GameError):
    default_message = "Game already started"


class RoomNotActive(GameError):
    default_message = "Game not started"


class GameOver(GameError):
    default_message = "Game is over"


# --- Turn actions ------------------------------------------------------------

class PlayerNotFound(GameError):
    default_message = "Player not found in this game"


class NotActivePlayer(GameError):
    default_message = "Not your turn"


class InvalidCardIndex(GameError):
    default_message = "No card at that position"


class IllegalPlay(GameError):
    default_message = "That card cannot be played"


class InvalidUnoCall(GameError):
    default_message = "You can only call UNO with one card left"


class TargetNotFound(GameError):
    default_message = "Challenged player not found"


class InvalidChallenge(GameError):
    default_message = "That player does not have exactly one card"


# --- Identity ----------------------------------------------------------------

class NameTaken(GameError):
    default_message = "This name is already in use"


class InvalidName(GameError):
    default_message = "Invalid display name"


class NotLoggedIn(GameError):
    default_message = "Log in before joining a room"
