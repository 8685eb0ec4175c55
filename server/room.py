"""
Room management for multiplayer UNO games.

This module handles room creation, membership and lifecycle for game
sessions. It knows nothing about sockets: a room is addressed by the
connection identifiers of its members, and the gateway resolves those to
transport connections.

A Room contains:
    - A unique 4-digit code for joining
    - A Game instance with the seated players and all card state
    - A lock serializing every mutation of that game

Locking:
    RoomRegistry.lock guards the code -> room mapping. Room.lock guards one
    room's game. The two are never held at the same time: join looks the
    room up under the registry lock and then takes the room lock; leave
    takes the room lock and then the registry lock to drop an emptied room.
    An emptied room is marked closed first so a racing join cannot revive it.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from constants import MAX_PLAYERS, ROOM_CODE_LENGTH
from errors import AlreadyInRoom, RoomFull, RoomNotFound, RoomNotJoinable
from game import Game, GameStatus, Player

logger = logging.getLogger(__name__)


@dataclass
class Room:
    """
    A game room/lobby that can host a multiplayer UNO game.

    Attributes:
        code: 4-digit room code for joining (e.g., "4821").
        game: The Game instance; its player list is the member list and the
            first member is the owner.
        lock: asyncio.Lock serializing game mutations for this room.
        closed: Set once the last member leaves; closed rooms accept nobody.
    """

    code: str
    game: Game = field(default_factory=Game)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)
    closed: bool = False

    def add_player(self, player_id: str, name: str) -> Player:
        """
        Seat a player in the room. The first player becomes the owner.

        Args:
            player_id: Connection identifier of the player.
            name: Display name.

        Returns:
            The created game Player.
        """
        player = Player(id=player_id, name=name)
        self.game.add_player(player)
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player from the room.

        Ownership passes to the next member in seat order.

        Returns:
            The removed Player, or None if not found.
        """
        return self.game.remove_player(player_id)

    def has_player(self, player_id: str) -> bool:
        return self.game.get_player(player_id) is not None

    def member_ids(self) -> list[str]:
        return self.game.player_ids()

    def member_names(self) -> list[str]:
        return [p.name for p in self.game.players]

    @property
    def owner_id(self) -> Optional[str]:
        return self.game.players[0].id if self.game.players else None

    @property
    def status(self) -> GameStatus:
        return self.game.status

    def is_empty(self) -> bool:
        """Check if the room has no players."""
        return not self.game.players

    def summary(self) -> dict:
        """Room info for lobby listings and roster updates."""
        names = self.member_names()
        return {
            "room_code": self.code,
            "owner": names[0] if names else None,
            "players": names,
            "player_count": len(names),
            "status": self.status.value,
        }


@dataclass
class LeaveResult:
    """
    What happened when a player left a room.

    Attributes:
        room: The room that was left.
        player: The removed player.
        room_deleted: The room emptied and was dropped from the registry.
        game_ended: The departure ended an active game.
    """

    room: Room
    player: Player
    room_deleted: bool = False
    game_ended: bool = False


class RoomRegistry:
    """
    Owns all live game rooms.

    Provides room creation with unique codes, membership changes, lookup
    and cleanup. One registry is built when the server starts and torn down
    when it stops.
    """

    def __init__(self, max_players: int = MAX_PLAYERS, rng: Optional[random.Random] = None) -> None:
        """Initialize an empty registry."""
        self.rooms: dict[str, Room] = {}
        self.lock = asyncio.Lock()
        self.max_players = max_players
        self._rng = rng or random.Random()

    def _generate_code(self, max_attempts: int = 100) -> str:
        """Generate a unique numeric room code."""
        low = 10 ** (ROOM_CODE_LENGTH - 1)
        high = 10 ** ROOM_CODE_LENGTH - 1
        for _ in range(max_attempts):
            code = str(self._rng.randint(low, high))
            if code not in self.rooms:
                return code
        raise RuntimeError("Could not generate unique room code")

    def get_room(self, code) -> Optional[Room]:
        """
        Get a room by its code.

        Args:
            code: The room code (surrounding whitespace is ignored).

        Returns:
            The Room if found, None otherwise.
        """
        if code is None:
            return None
        return self.rooms.get(str(code).strip())

    def find_identity_room(self, player_id: str) -> Optional[Room]:
        """
        Find which room a player is in.

        Returns:
            The Room containing the player, or None.
        """
        for room in self.rooms.values():
            if room.has_player(player_id):
                return room
        return None

    async def create_room(self, owner_id: str, owner_name: str) -> Room:
        """
        Create a new waiting room with the caller as its only member.

        Raises:
            AlreadyInRoom: If the caller is already seated somewhere.
        """
        async with self.lock:
            if self.find_identity_room(owner_id) is not None:
                raise AlreadyInRoom()
            room = Room(code=self._generate_code())
            room.add_player(owner_id, owner_name)
            self.rooms[room.code] = room

        logger.info(f"Room {room.code} created by {owner_name}", extra={"room_code": room.code})
        return room

    async def list_available_rooms(self) -> list[dict]:
        """
        List rooms that are waiting for players and not full.

        Returns:
            Room summaries, one per room code.
        """
        async with self.lock:
            rooms = list(self.rooms.values())
        return [
            room.summary()
            for room in rooms
            if not room.closed
            and room.status == GameStatus.WAITING
            and len(room.game.players) < self.max_players
        ]

    async def join_room(self, code, player_id: str, name: str) -> Room:
        """
        Add a player to a waiting room.

        Raises:
            RoomNotFound: Unknown or closed room code.
            AlreadyInRoom: The player is already seated in a room.
            RoomNotJoinable: The game has started or finished.
            RoomFull: The room already has the maximum number of players.
        """
        async with self.lock:
            room = self.get_room(code)
            current = self.find_identity_room(player_id)
        if room is None:
            raise RoomNotFound()
        if current is not None:
            raise AlreadyInRoom()

        async with room.lock:
            if room.closed:
                raise RoomNotFound()
            if room.status != GameStatus.WAITING:
                raise RoomNotJoinable()
            if len(room.game.players) >= self.max_players:
                raise RoomFull()
            room.add_player(player_id, name)

        logger.info(f"{name} joined room {room.code}", extra={"room_code": room.code})
        return room

    async def leave_room(self, code, player_id: str) -> Optional[LeaveResult]:
        """
        Remove a player from a room, dropping the room once it is empty.

        Returns:
            A LeaveResult, or None if the room is unknown or the player was
            not a member.
        """
        async with self.lock:
            room = self.get_room(code)
        if room is None:
            return None
        return await self._leave(room, player_id)

    async def remove_identity_from_all_rooms(self, player_id: str) -> list[LeaveResult]:
        """Apply leave semantics to every room the player is seated in."""
        async with self.lock:
            rooms = [room for room in self.rooms.values() if room.has_player(player_id)]

        results = []
        for room in rooms:
            result = await self._leave(room, player_id)
            if result is not None:
                results.append(result)
        return results

    async def _leave(self, room: Room, player_id: str) -> Optional[LeaveResult]:
        async with room.lock:
            was_active = room.status == GameStatus.ACTIVE
            player = room.remove_player(player_id)
            if player is None:
                return None
            if room.is_empty():
                room.closed = True
            result = LeaveResult(
                room=room,
                player=player,
                room_deleted=room.closed,
                game_ended=was_active and room.status == GameStatus.GAME_OVER,
            )

        logger.info(f"{player.name} left room {room.code}", extra={"room_code": room.code})
        if result.room_deleted:
            async with self.lock:
                if self.rooms.get(room.code) is room:
                    del self.rooms[room.code]
            logger.info(f"Room {room.code} removed (empty)", extra={"room_code": room.code})
        return result

    def close_all(self) -> None:
        """Drop every room (server shutdown)."""
        for room in self.rooms.values():
            room.closed = True
        self.rooms.clear()

    def stats(self) -> dict:
        """Counters for the metrics endpoint."""
        rooms = list(self.rooms.values())
        return {
            "active_rooms": len(rooms),
            "total_players": sum(len(r.game.players) for r in rooms),
            "games_in_progress": sum(1 for r in rooms if r.status == GameStatus.ACTIVE),
        }
