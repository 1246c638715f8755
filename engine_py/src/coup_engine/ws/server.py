"""
FastAPI WebSocket server for the game hub.
"""

import asyncio
import contextlib
import logging
from collections import defaultdict
from typing import Any, Dict, Optional, Set, Tuple

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..actions import parse_action
from ..config import ServerConfig
from ..errors import GameError, GameNotFound, UnknownPlayer
from ..models import GameState
from ..rooms import RoomDirectory
from ..serialization import sanitize_state
from ..session import GameSessionManager
from .events import (
    ChatEvent, CreateRoomEvent, ErrorCode, GameActionEvent, GameStartEvent,
    JoinRoomEvent, LeaveRoomEvent, ReconnectEvent, RequestStateEvent,
    create_chat_event, create_error_event, create_game_ended_event,
    create_game_state_event, create_notification_event,
    create_players_update_event, create_room_joined_event,
    create_rooms_update_event, parse_inbound_event,
)

logger = logging.getLogger(__name__)

config = ServerConfig.from_env()
directory = RoomDirectory(
    disconnect_grace=config.disconnect_grace,
    default_max_players=config.default_max_players,
)
sessions = GameSessionManager(
    game_timeout=config.game_timeout,
)


def encode_event(event: BaseModel) -> str:
    return orjson.dumps(event.model_dump(mode="json")).decode()


class ConnectionManager:
    """Manages WebSocket connections and broadcasting."""

    def __init__(self):
        self.connections: Set[WebSocket] = set()
        self.room_connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.connection_players: Dict[WebSocket, Tuple[str, str]] = {}

    def connect(self, websocket: WebSocket):
        # WebSocket is already accepted in the main endpoint
        self.connections.add(websocket)

    def join(self, websocket: WebSocket, room_id: str, player_id: str):
        """Attach a connection to a room seat, leaving any previous room."""
        self.leave(websocket)
        self.room_connections[room_id].add(websocket)
        self.connection_players[websocket] = (room_id, player_id)
        logger.info(f"Player {player_id} connected to room {room_id}")

    def leave(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        room_id, player_id = self.connection_players.pop(websocket, (None, None))
        if room_id is not None:
            self.room_connections[room_id].discard(websocket)
            if not self.room_connections[room_id]:
                del self.room_connections[room_id]
        return room_id, player_id

    def disconnect(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        self.connections.discard(websocket)
        room_id, player_id = self.leave(websocket)
        if player_id:
            logger.info(f"Player {player_id} disconnected from room {room_id}")
        return room_id, player_id

    def lookup(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        return self.connection_players.get(websocket, (None, None))

    async def send(self, websocket: WebSocket, event: BaseModel):
        try:
            await websocket.send_text(encode_event(event))
        except Exception as e:
            logger.error(f"Error sending to connection: {e}")
            self.disconnect(websocket)

    async def broadcast_to_room(self, room_id: str, event: BaseModel):
        for websocket in list(self.room_connections.get(room_id, ())):
            await self.send(websocket, event)

    async def broadcast_all(self, event: BaseModel):
        for websocket in list(self.connections):
            await self.send(websocket, event)

    async def send_to_player(self, room_id: str, player_id: str, event: BaseModel):
        for websocket in list(self.room_connections.get(room_id, ())):
            if self.connection_players.get(websocket, (None, None))[1] == player_id:
                await self.send(websocket, event)

    async def broadcast_game_state(self, room_id: str, state: GameState):
        """Send every connection in the room the state as its player may see it."""
        for websocket in list(self.room_connections.get(room_id, ())):
            _, player_id = self.lookup(websocket)
            event = create_game_state_event(sanitize_state(state, player_id))
            await self.send(websocket, event)


manager = ConnectionManager()


async def cleanup_once(now: Optional[float] = None):
    """Reclaim idle games and expired disconnected players."""
    for room_id in sessions.cleanup_inactive(now):
        await manager.broadcast_to_room(room_id, create_game_ended_event(room_id, None, "timeout"))

    expired = directory.sweep_disconnected(now)
    for room_id, player_id in expired:
        await abandon_game(room_id, player_id)
    for room_id in {room_id for room_id, _ in expired}:
        await broadcast_players(room_id)
    if expired:
        await manager.broadcast_all(create_rooms_update_event(directory.public_summary()))


async def abandon_game(room_id: str, player_id: str) -> bool:
    """End the room's game when a player still alive in it leaves for good."""
    state = sessions.get_state(room_id)
    if state is None:
        return False
    seat = state.get_player(player_id)
    if seat is None or not seat.alive:
        return False

    logger.warning(f"Player {player_id} left room {room_id} mid-game; ending the game")
    sessions.end_game(room_id)
    await manager.broadcast_to_room(room_id, create_game_ended_event(room_id, None, "player_left"))
    return True


async def cleanup_loop(interval: float):
    while True:
        await asyncio.sleep(interval)
        try:
            await cleanup_once()
        except Exception as e:
            logger.error(f"Cleanup sweep failed: {e}")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(cleanup_loop(config.cleanup_interval))
    logger.info(f"Cleanup sweep every {config.cleanup_interval}s")
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


# FastAPI app
app = FastAPI(title="Coup Game Hub", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "rooms": len(directory.rooms),
        "active_games": sessions.get_stats()["active_games"],
        "connections": len(manager.connections),
    }


@app.get("/rooms")
async def list_rooms():
    return directory.public_summary()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Main WebSocket endpoint."""
    await websocket.accept()
    manager.connect(websocket)
    logger.info("WebSocket connection accepted")

    try:
        await manager.send(websocket, create_rooms_update_event(directory.public_summary()))
        while True:
            raw_data = await websocket.receive_text()
            await process_message(websocket, raw_data)
    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        room_id, player_id = manager.disconnect(websocket)
        if room_id and directory.mark_disconnected(room_id, player_id):
            await broadcast_players(room_id)
            await manager.broadcast_all(create_rooms_update_event(directory.public_summary()))


async def process_message(websocket: WebSocket, raw_data: str):
    """Parse and handle one inbound message, answering failures with an error event."""
    try:
        event = parse_inbound_event(orjson.loads(raw_data))
        await handle_event(websocket, event)
    except GameError as e:
        await manager.send(websocket, create_error_event(e.code, e.message))
    except ValueError as e:
        await manager.send(websocket, create_error_event(ErrorCode.INVALID_EVENT, str(e)))
    except Exception as e:
        logger.exception(f"Error handling event: {e}")
        await manager.send(websocket, create_error_event(ErrorCode.INTERNAL, "Internal server error"))


async def handle_event(websocket: WebSocket, event) -> Dict[str, Any]:
    """Handle an inbound event."""
    handler = EVENT_HANDLERS.get(type(event))
    if handler is None:
        raise ValueError(f"Unhandled event type: {type(event)}")
    return await handler(websocket, event)


async def broadcast_players(room_id: str):
    if room_id not in directory.rooms:
        return
    players = directory.full_room_data(room_id)["players"]
    await manager.broadcast_to_room(room_id, create_players_update_event(room_id, players))


async def _enter_room(websocket: WebSocket, room_id: str, player) -> Dict[str, Any]:
    """Seat a connection and bring everybody up to date."""
    manager.join(websocket, room_id, player.id)
    room_data = directory.full_room_data(room_id)
    player_data = {"id": player.id, "name": player.name, "is_host": player.is_host}

    await manager.send(websocket, create_room_joined_event(room_data, player_data))
    await manager.broadcast_all(create_rooms_update_event(directory.public_summary()))
    await broadcast_players(room_id)

    state = sessions.get_state(room_id)
    if state is not None:
        await manager.send(websocket, create_game_state_event(sanitize_state(state, player.id)))
    return {"success": True, "room_id": room_id, "player_id": player.id}


async def _send_not_in_room(websocket: WebSocket) -> Dict[str, Any]:
    await manager.send(websocket, create_error_event(ErrorCode.NOT_IN_ROOM, "Not in a room"))
    return {"success": False}


async def handle_create_room(websocket: WebSocket, event: CreateRoomEvent) -> Dict[str, Any]:
    room = directory.create_room(
        event.room_name,
        is_private=event.is_private,
        password=event.password,
        max_players=event.max_players,
    )
    player = directory.add_player(room.id, event.player_name, is_host=True)
    return await _enter_room(websocket, room.id, player)


async def handle_join_room(websocket: WebSocket, event: JoinRoomEvent) -> Dict[str, Any]:
    directory.check_password(event.room_id, event.password)
    player = directory.add_player(event.room_id, event.player_name, player_id=event.player_id)
    return await _enter_room(websocket, event.room_id, player)


async def handle_reconnect(websocket: WebSocket, event: ReconnectEvent) -> Dict[str, Any]:
    room = directory.get_room(event.room_id)
    existing = room.get_player(event.player_id)
    if existing is None:
        raise UnknownPlayer(f"Player {event.player_id} is not seated in room {event.room_id}")
    player = directory.add_player(
        event.room_id,
        event.player_name or existing.name,
        player_id=event.player_id,
    )
    return await _enter_room(websocket, event.room_id, player)


async def handle_leave_room(websocket: WebSocket, event: LeaveRoomEvent) -> Dict[str, Any]:
    room_id, player_id = manager.leave(websocket)
    if not room_id:
        return await _send_not_in_room(websocket)

    await abandon_game(room_id, player_id)
    directory.remove_player(room_id, player_id)
    await manager.broadcast_all(create_rooms_update_event(directory.public_summary()))
    await broadcast_players(room_id)
    return {"success": True}


async def handle_chat(websocket: WebSocket, event: ChatEvent) -> Dict[str, Any]:
    """Handle chat message event."""
    room_id, player_id = manager.lookup(websocket)
    if not room_id:
        return await _send_not_in_room(websocket)

    player = directory.get_room(room_id).get_player(player_id)
    name = player.name if player else "anon"
    await manager.broadcast_to_room(room_id, create_chat_event(player_id, name, event.text))
    return {"success": True}


async def handle_game_start(websocket: WebSocket, event: GameStartEvent) -> Dict[str, Any]:
    room_id, player_id = manager.lookup(websocket)
    if not room_id:
        return await _send_not_in_room(websocket)

    room = directory.get_room(room_id)
    player = room.get_player(player_id)
    if player is None or not player.is_host:
        await manager.send(websocket, create_error_event(ErrorCode.NOT_HOST, "Only the host can start the game"))
        return {"success": False}

    roster = [{"id": p.id, "name": p.name} for p in room.players]
    state = sessions.start_game(room_id, event.game_id, roster, seed=event.seed)
    await manager.broadcast_game_state(room_id, state)
    return {"success": True}


async def _deliver_notifications(room_id: str, notifications):
    for note in notifications:
        event = create_notification_event(note.event, note.data)
        if note.player_id is None:
            await manager.broadcast_to_room(room_id, event)
        else:
            await manager.send_to_player(room_id, note.player_id, event)


async def handle_game_action(websocket: WebSocket, event: GameActionEvent) -> Dict[str, Any]:
    room_id, player_id = manager.lookup(websocket)
    if not room_id:
        return await _send_not_in_room(websocket)

    action = parse_action(event.action_type, player_id, event.payload)
    result = sessions.handle_action(room_id, action)

    if not result.success:
        await manager.send(websocket, create_error_event(result.error_code, result.error_message))
        return {"success": False, "error": result.error_message}

    await manager.broadcast_game_state(room_id, result.state)
    await _deliver_notifications(room_id, result.notifications)

    if result.state.is_over:
        sessions.end_game(room_id)
        await manager.broadcast_to_room(
            room_id,
            create_game_ended_event(room_id, result.state.winner_id, "winner"),
        )
    return {"success": True}


async def handle_request_state(websocket: WebSocket, event: RequestStateEvent) -> Dict[str, Any]:
    room_id, player_id = manager.lookup(websocket)
    if not room_id:
        return await _send_not_in_room(websocket)

    state = sessions.get_state(room_id)
    if state is None:
        raise GameNotFound(room_id)
    await manager.send(websocket, create_game_state_event(sanitize_state(state, player_id)))
    return {"success": True}


EVENT_HANDLERS = {
    CreateRoomEvent: handle_create_room,
    JoinRoomEvent: handle_join_room,
    ReconnectEvent: handle_reconnect,
    LeaveRoomEvent: handle_leave_room,
    ChatEvent: handle_chat,
    GameStartEvent: handle_game_start,
    GameActionEvent: handle_game_action,
    RequestStateEvent: handle_request_state,
}
