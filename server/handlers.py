"""WebSocket message handlers for the UNO card game.

Each handler corresponds to a single ActionType from the client and is
dispatched via the HANDLERS dict. Handlers raise GameError subclasses for
rejected actions; ``dispatch`` reports those to the sender only.

Every game mutation runs under the room's lock, and the room is told about
it before the lock is released, so broadcasts go out in commit order.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket
from pydantic import ValidationError

from connections import ConnectionManager
from errors import AlreadyInRoom, GameError, NotInRoom, NotLoggedIn, RoomNotFound
from game import ChallengeResult, GameStatus, PlayResult
from identities import IdentityDirectory
from logging_config import room_code_var
from models import (
    ActionType,
    ChallengePayload,
    EventType,
    LoginPayload,
    PlayCardPayload,
    RoomPayload,
)
from room import LeaveResult, Room, RoomRegistry

logger = logging.getLogger(__name__)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str
    current_room: Optional[Room] = None


async def _send(ctx: ConnectionContext, message: dict) -> None:
    try:
        await ctx.websocket.send_json(message)
    except Exception as e:
        logger.debug(f"Send to {ctx.connection_id} failed: {e}")


def _require_login(ctx: ConnectionContext, directory: IdentityDirectory) -> str:
    if not directory.is_registered(ctx.connection_id):
        raise NotLoggedIn()
    return directory.display_name(ctx.connection_id)


def _resolve_room(payload: RoomPayload, ctx: ConnectionContext, registry: RoomRegistry) -> Room:
    """The room named in the payload, else the connection's current room."""
    if payload.room_code:
        room = registry.get_room(payload.room_code)
        if room is None or room.closed:
            raise RoomNotFound()
        return room
    if ctx.current_room is None:
        raise NotInRoom()
    return ctx.current_room


def _player_name(room: Room, player_id: Optional[str]) -> Optional[str]:
    player = room.game.get_player(player_id) if player_id else None
    return player.name if player else None


# ---------------------------------------------------------------------------
# Broadcast helpers
# ---------------------------------------------------------------------------

async def broadcast_room_update(room: Room, connections: ConnectionManager, **extra) -> None:
    """Send the roster and status to every member."""
    await connections.send_to_many(room.member_ids(), {
        "type": EventType.ROOM_UPDATED.value,
        **room.summary(),
        **extra,
    })


async def broadcast_game_state(
    room: Room,
    connections: ConnectionManager,
    event_type: EventType = EventType.GAME_STATE,
    last_action: Optional[dict] = None,
) -> None:
    """Send each member the game state filtered to their own hand."""
    for pid in room.member_ids():
        message = {
            "type": event_type.value,
            "game_state": room.game.get_state(pid),
        }
        if last_action:
            message["last_action"] = last_action
        await connections.send_to(pid, message)


async def broadcast_game_over(room: Room, connections: ConnectionManager) -> None:
    await connections.send_to_many(room.member_ids(), {
        "type": EventType.GAME_OVER.value,
        "winner": room.game.winner_name,
        "hand_sizes": {p.name: len(p.hand) for p in room.game.players},
    })


async def notify_lobby(registry: RoomRegistry, connections: ConnectionManager) -> None:
    """Tell every connected client the list of open rooms changed."""
    await connections.broadcast_all({
        "type": EventType.ROOMS_UPDATED.value,
        "rooms": await registry.list_available_rooms(),
    })


async def announce_departure(result: LeaveResult, connections: ConnectionManager) -> None:
    """Update the remaining members of a room someone just left."""
    room = result.room
    if result.room_deleted:
        return

    async with room.lock:
        await broadcast_room_update(room, connections, left=result.player.name)
        if room.status != GameStatus.WAITING:
            await broadcast_game_state(room, connections, last_action={
                "action": "leave",
                "player": result.player.name,
            })
        if result.game_ended:
            await broadcast_game_over(room, connections)


def _describe_play(room: Room, result: PlayResult) -> dict:
    action = {
        "action": "play",
        "player": _player_name(room, result.player_id),
        "card": result.card.to_dict(),
        "color": result.color.value,
    }
    if result.victim_id:
        action["victim"] = _player_name(room, result.victim_id)
        action["cards_drawn"] = result.cards_drawn
    return action


def _describe_challenge(room: Room, result: ChallengeResult) -> dict:
    return {
        "challenger": _player_name(room, result.challenger_id),
        "target": _player_name(room, result.target_id),
        "success": result.success,
        "penalized": _player_name(room, result.penalized_id),
        "cards_drawn": result.cards_drawn,
    }


# ---------------------------------------------------------------------------
# Identity / Lobby handlers
# ---------------------------------------------------------------------------

async def handle_login(data: dict, ctx: ConnectionContext, *, directory, **kw) -> None:
    payload = LoginPayload.model_validate(data)
    if ctx.current_room is not None:
        raise AlreadyInRoom("Leave your room before changing your name")

    name = directory.register(ctx.connection_id, payload.name)
    await ctx.websocket.send_json({
        "type": EventType.LOGIN_SUCCESS.value,
        "name": name,
    })


async def handle_list_rooms(data: dict, ctx: ConnectionContext, *, registry, **kw) -> None:
    await ctx.websocket.send_json({
        "type": EventType.ROOMS_LIST.value,
        "rooms": await registry.list_available_rooms(),
    })


async def handle_create_room(data: dict, ctx: ConnectionContext, *, registry, connections, directory, **kw) -> None:
    player_name = _require_login(ctx, directory)
    room = await registry.create_room(ctx.connection_id, player_name)
    ctx.current_room = room

    async with room.lock:
        await ctx.websocket.send_json({
            "type": EventType.ROOM_CREATED.value,
            "room_code": room.code,
            "players": room.member_names(),
        })

    await notify_lobby(registry, connections)


async def handle_join_room(data: dict, ctx: ConnectionContext, *, registry, connections, directory, **kw) -> None:
    player_name = _require_login(ctx, directory)
    payload = RoomPayload.model_validate(data)
    if not payload.room_code:
        raise RoomNotFound()

    room = await registry.join_room(payload.room_code, ctx.connection_id, player_name)
    ctx.current_room = room

    async with room.lock:
        await ctx.websocket.send_json({
            "type": EventType.ROOM_JOINED.value,
            "room_code": room.code,
            "players": room.member_names(),
        })
        await broadcast_room_update(room, connections, joined=player_name)

    await notify_lobby(registry, connections)


async def handle_leave_room(data: dict, ctx: ConnectionContext, *, registry, connections, **kw) -> None:
    payload = RoomPayload.model_validate(data)
    room = registry.get_room(payload.room_code) if payload.room_code else ctx.current_room
    if room is None:
        return

    result = await registry.leave_room(room.code, ctx.connection_id)
    if ctx.current_room is room:
        ctx.current_room = None
    if result is None:
        return

    await announce_departure(result, connections)
    await notify_lobby(registry, connections)


# ---------------------------------------------------------------------------
# Game handlers
# ---------------------------------------------------------------------------

async def handle_start_game(data: dict, ctx: ConnectionContext, *, registry, connections, **kw) -> None:
    room = _resolve_room(RoomPayload.model_validate(data), ctx, registry)

    async with room.lock:
        room.game.start_game(ctx.connection_id)
        await broadcast_room_update(room, connections)
        await broadcast_game_state(room, connections, event_type=EventType.GAME_STARTED)

    await notify_lobby(registry, connections)


async def handle_play_card(data: dict, ctx: ConnectionContext, *, registry, connections, **kw) -> None:
    payload = PlayCardPayload.model_validate(data)
    room = _resolve_room(payload, ctx, registry)

    async with room.lock:
        result = room.game.play_card(ctx.connection_id, payload.hand_index, payload.chosen_color)
        await broadcast_game_state(room, connections, last_action=_describe_play(room, result))
        if result.game_over:
            await broadcast_game_over(room, connections)


async def handle_draw_card(data: dict, ctx: ConnectionContext, *, registry, connections, **kw) -> None:
    room = _resolve_room(RoomPayload.model_validate(data), ctx, registry)

    async with room.lock:
        card = room.game.draw_card(ctx.connection_id)
        player = room.game.get_player(ctx.connection_id)

        await ctx.websocket.send_json({
            "type": EventType.CARD_DRAWN.value,
            "card": card.to_dict() if card else None,
            "hand": [c.to_dict() for c in player.hand],
        })
        await connections.send_to_many(room.member_ids(), {
            "type": EventType.PLAYER_DREW_CARD.value,
            "player": player.name,
            "hand_size": len(player.hand),
        }, exclude=ctx.connection_id)
        await broadcast_game_state(room, connections, last_action={
            "action": "draw",
            "player": player.name,
        })


async def handle_call_uno(data: dict, ctx: ConnectionContext, *, registry, connections, **kw) -> None:
    room = _resolve_room(RoomPayload.model_validate(data), ctx, registry)

    async with room.lock:
        room.game.call_uno(ctx.connection_id)
        await connections.send_to_many(room.member_ids(), {
            "type": EventType.UNO_CALLED.value,
            "player": _player_name(room, ctx.connection_id),
        })
        await broadcast_game_state(room, connections)


async def handle_challenge_uno(data: dict, ctx: ConnectionContext, *, registry, connections, **kw) -> None:
    payload = ChallengePayload.model_validate(data)
    room = _resolve_room(payload, ctx, registry)

    async with room.lock:
        result = room.game.challenge_uno(ctx.connection_id, payload.target_name)
        await connections.send_to_many(room.member_ids(), {
            "type": EventType.CHALLENGE_RESULT.value,
            **_describe_challenge(room, result),
        })
        await broadcast_game_state(room, connections)


# ---------------------------------------------------------------------------
# Disconnect
# ---------------------------------------------------------------------------

async def handle_disconnect(ctx: ConnectionContext, *, registry, connections, directory, **kw) -> None:
    """Drop a closed connection from every room and from the directory."""
    connections.disconnect(ctx.connection_id)
    results = await registry.remove_identity_from_all_rooms(ctx.connection_id)
    ctx.current_room = None

    for result in results:
        await announce_departure(result, connections)

    directory.unregister(ctx.connection_id)
    if results:
        await notify_lobby(registry, connections)


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

HANDLERS = {
    ActionType.LOGIN: handle_login,
    ActionType.LIST_ROOMS: handle_list_rooms,
    ActionType.CREATE_ROOM: handle_create_room,
    ActionType.JOIN_ROOM: handle_join_room,
    ActionType.LEAVE_ROOM: handle_leave_room,
    ActionType.START_GAME: handle_start_game,
    ActionType.PLAY_CARD: handle_play_card,
    ActionType.DRAW_CARD: handle_draw_card,
    ActionType.CALL_UNO: handle_call_uno,
    ActionType.CHALLENGE_UNO: handle_challenge_uno,
}

# Everything else needs a display name first
ANONYMOUS_ACTIONS = frozenset({ActionType.LOGIN, ActionType.LIST_ROOMS})

_missing = set(ActionType) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"No handler for actions: {sorted(a.value for a in _missing)}")


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )


async def dispatch(data, ctx: ConnectionContext, **deps) -> None:
    """
    Route one client message to its handler.

    Rejected actions (GameError, invalid payloads) are reported to the
    sender only and leave all state untouched.
    """
    if not isinstance(data, dict):
        await _send(ctx, {"type": "error", "code": "InvalidAction", "message": "Message must be an object"})
        return

    try:
        action = ActionType(data.get("type"))
    except ValueError:
        await _send(ctx, {
            "type": "error",
            "code": "InvalidAction",
            "message": f"Unknown action: {data.get('type')!r}",
        })
        return

    token = room_code_var.set(ctx.current_room.code if ctx.current_room else None)
    try:
        if action not in ANONYMOUS_ACTIONS:
            _require_login(ctx, deps["directory"])
        await HANDLERS[action](data, ctx, **deps)
    except GameError as e:
        logger.debug(f"Rejected {action.value} from {ctx.connection_id}: {e.code}")
        await _send(ctx, e.to_dict())
    except ValidationError as e:
        await _send(ctx, {"type": "error", "code": "InvalidPayload", "message": _validation_message(e)})
    except Exception:
        logger.exception(f"Handler for {action.value} failed")
        await _send(ctx, {"type": "error", "code": "InternalError", "message": "Something went wrong"})
    finally:
        room_code_var.reset(token)
