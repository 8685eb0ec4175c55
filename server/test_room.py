"""
Test suite for Room, RoomRegistry and ConnectionManager.

Covers:
- Room creation and code uniqueness
- Joining, with every rejection reason
- Leaving, owner hand-off and room deletion
- Lobby listing
- Disconnect cleanup across rooms
- Message send and broadcast

Run with: pytest test_room.py -v
"""

import asyncio
import random

import pytest

from connections import ConnectionManager
from errors import AlreadyInRoom, RoomFull, RoomNotFound, RoomNotJoinable
from game import GameStatus
from room import Room, RoomRegistry


# =============================================================================
# Mock helpers
# =============================================================================

class MockWebSocket:
    """Mock WebSocket that collects sent messages."""

    def __init__(self):
        self.messages: list[dict] = []
        self.closed = False

    async def send_json(self, data: dict):
        self.messages.append(data)

    async def close(self, code: int = 1000, reason: str = ""):
        self.closed = True


class BrokenWebSocket(MockWebSocket):

    async def send_json(self, data: dict):
        raise RuntimeError("socket gone")


async def make_room(registry: RoomRegistry, num_players: int = 2) -> Room:
    room = await registry.create_room("p0", "Player 0")
    for i in range(1, num_players):
        await registry.join_room(room.code, f"p{i}", f"Player {i}")
    return room


# =============================================================================
# Room tests
# =============================================================================

class TestRoom:

    def test_first_player_is_owner(self):
        room = Room(code="1234")
        room.add_player("p0", "Alice")
        room.add_player("p1", "Bob")
        assert room.owner_id == "p0"
        assert room.member_names() == ["Alice", "Bob"]

    def test_owner_passes_to_next_member(self):
        room = Room(code="1234")
        room.add_player("p0", "Alice")
        room.add_player("p1", "Bob")
        room.remove_player("p0")
        assert room.owner_id == "p1"

    def test_summary(self):
        room = Room(code="1234")
        room.add_player("p0", "Alice")
        assert room.summary() == {
            "room_code": "1234",
            "owner": "Alice",
            "players": ["Alice"],
            "player_count": 1,
            "status": "waiting",
        }

    def test_is_empty(self):
        room = Room(code="1234")
        assert room.is_empty()
        room.add_player("p0", "Alice")
        assert not room.is_empty()


# =============================================================================
# RoomRegistry tests
# =============================================================================

class TestRegistryCreate:

    @pytest.mark.asyncio
    async def test_create_room(self):
        registry = RoomRegistry()
        room = await registry.create_room("p0", "Alice")

        assert len(room.code) == 4
        assert room.code.isdigit()
        assert room.owner_id == "p0"
        assert room.status == GameStatus.WAITING
        assert registry.get_room(room.code) is room

    @pytest.mark.asyncio
    async def test_codes_are_unique(self):
        registry = RoomRegistry(rng=random.Random(3))
        codes = set()
        for i in range(50):
            room = await registry.create_room(f"p{i}", f"Player {i}")
            codes.add(room.code)
        assert len(codes) == 50

    @pytest.mark.asyncio
    async def test_create_while_seated(self):
        registry = RoomRegistry()
        await registry.create_room("p0", "Alice")
        with pytest.raises(AlreadyInRoom):
            await registry.create_room("p0", "Alice")
        assert len(registry.rooms) == 1

    def test_lookup_ignores_whitespace(self):
        registry = RoomRegistry()
        room = Room(code="4821")
        registry.rooms[room.code] = room
        assert registry.get_room(" 4821 ") is room
        assert registry.get_room(4821) is room
        assert registry.get_room(None) is None


class TestRegistryJoin:

    @pytest.mark.asyncio
    async def test_join(self):
        registry = RoomRegistry()
        room = await registry.create_room("p0", "Alice")

        joined = await registry.join_room(room.code, "p1", "Bob")

        assert joined is room
        assert room.member_names() == ["Alice", "Bob"]

    @pytest.mark.asyncio
    async def test_join_unknown_room(self):
        registry = RoomRegistry()
        with pytest.raises(RoomNotFound):
            await registry.join_room("0000", "p1", "Bob")

    @pytest.mark.asyncio
    async def test_join_full_room(self):
        registry = RoomRegistry(max_players=2)
        room = await make_room(registry, 2)
        with pytest.raises(RoomFull):
            await registry.join_room(room.code, "p9", "Zed")
        assert len(room.game.players) == 2

    @pytest.mark.asyncio
    async def test_join_started_room(self):
        registry = RoomRegistry()
        room = await make_room(registry, 2)
        room.game.start_game("p0")
        with pytest.raises(RoomNotJoinable):
            await registry.join_room(room.code, "p9", "Zed")

    @pytest.mark.asyncio
    async def test_join_twice(self):
        registry = RoomRegistry()
        room = await make_room(registry, 2)
        with pytest.raises(AlreadyInRoom):
            await registry.join_room(room.code, "p1", "Player 1")

    @pytest.mark.asyncio
    async def test_join_closed_room(self):
        registry = RoomRegistry()
        room = await registry.create_room("p0", "Alice")
        room.closed = True
        with pytest.raises(RoomNotFound):
            await registry.join_room(room.code, "p1", "Bob")

    @pytest.mark.asyncio
    async def test_concurrent_joins_respect_capacity(self):
        registry = RoomRegistry(max_players=4)
        room = await registry.create_room("p0", "Alice")

        results = await asyncio.gather(
            *(registry.join_room(room.code, f"p{i}", f"Player {i}") for i in range(1, 6)),
            return_exceptions=True,
        )

        assert sum(1 for r in results if r is room) == 3
        assert sum(1 for r in results if isinstance(r, RoomFull)) == 2
        assert len(room.game.players) == 4


class TestRegistryLeave:

    @pytest.mark.asyncio
    async def test_leave(self):
        registry = RoomRegistry()
        room = await make_room(registry, 2)

        result = await registry.leave_room(room.code, "p1")

        assert result.player.id == "p1"
        assert not result.room_deleted
        assert room.member_ids() == ["p0"]

    @pytest.mark.asyncio
    async def test_last_leave_deletes_room(self):
        registry = RoomRegistry()
        room = await registry.create_room("p0", "Alice")

        result = await registry.leave_room(room.code, "p0")

        assert result.room_deleted
        assert room.closed
        assert registry.get_room(room.code) is None

    @pytest.mark.asyncio
    async def test_leave_is_idempotent(self):
        registry = RoomRegistry()
        room = await make_room(registry, 2)
        await registry.leave_room(room.code, "p1")
        assert await registry.leave_room(room.code, "p1") is None
        assert await registry.leave_room("0000", "p1") is None

    @pytest.mark.asyncio
    async def test_leave_ends_two_player_game(self):
        registry = RoomRegistry()
        room = await make_room(registry, 2)
        room.game.start_game("p0")

        result = await registry.leave_room(room.code, "p0")

        assert result.game_ended
        assert room.status == GameStatus.GAME_OVER
        assert room.game.winner_id == "p1"

    @pytest.mark.asyncio
    async def test_remove_identity_from_all_rooms(self):
        registry = RoomRegistry()
        room = await make_room(registry, 3)

        results = await registry.remove_identity_from_all_rooms("p1")

        assert [r.room for r in results] == [room]
        assert not room.has_player("p1")
        assert await registry.remove_identity_from_all_rooms("p1") == []


class TestRegistryListing:

    @pytest.mark.asyncio
    async def test_lists_only_waiting_rooms_with_seats(self):
        registry = RoomRegistry(max_players=2)
        open_room = await registry.create_room("a0", "A0")
        full_room = await registry.create_room("b0", "B0")
        await registry.join_room(full_room.code, "b1", "B1")
        started = await registry.create_room("c0", "C0")
        await registry.join_room(started.code, "c1", "C1")
        started.game.start_game("c0")

        listed = await registry.list_available_rooms()

        assert [r["room_code"] for r in listed] == [open_room.code]
        assert listed[0]["players"] == ["A0"]

    @pytest.mark.asyncio
    async def test_stats(self):
        registry = RoomRegistry()
        room = await make_room(registry, 3)
        room.game.start_game("p0")
        await registry.create_room("x", "X")

        assert registry.stats() == {
            "active_rooms": 2,
            "total_players": 4,
            "games_in_progress": 1,
        }

    @pytest.mark.asyncio
    async def test_close_all(self):
        registry = RoomRegistry()
        room = await registry.create_room("p0", "Alice")
        registry.close_all()
        assert room.closed
        assert registry.rooms == {}


# =============================================================================
# ConnectionManager tests
# =============================================================================

class TestConnectionManager:

    @pytest.mark.asyncio
    async def test_send_to(self):
        manager = ConnectionManager()
        ws = MockWebSocket()
        manager.connect("c1", ws)

        assert await manager.send_to("c1", {"type": "ping"})
        assert ws.messages == [{"type": "ping"}]
        assert not await manager.send_to("missing", {"type": "ping"})

    @pytest.mark.asyncio
    async def test_send_to_many_with_exclude(self):
        manager = ConnectionManager()
        sockets = {f"c{i}": MockWebSocket() for i in range(3)}
        for cid, ws in sockets.items():
            manager.connect(cid, ws)

        await manager.send_to_many(["c0", "c1", "c2"], {"type": "hi"}, exclude="c1")

        assert len(sockets["c0"].messages) == 1
        assert sockets["c1"].messages == []
        assert len(sockets["c2"].messages) == 1

    @pytest.mark.asyncio
    async def test_failed_send_does_not_stop_broadcast(self):
        manager = ConnectionManager()
        good = MockWebSocket()
        manager.connect("bad", BrokenWebSocket())
        manager.connect("good", good)

        await manager.broadcast_all({"type": "rooms_updated"})

        assert good.messages == [{"type": "rooms_updated"}]

    @pytest.mark.asyncio
    async def test_close_all(self):
        manager = ConnectionManager()
        ws = MockWebSocket()
        manager.connect("c1", ws)

        await manager.close_all()

        assert ws.closed
        assert len(manager) == 0
