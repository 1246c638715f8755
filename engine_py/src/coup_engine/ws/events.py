"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    RECONNECT = "reconnect"
    LEAVE_ROOM = "leave_room"
    CHAT = "chat"
    GAME_START = "game_start"
    GAME_ACTION = "game_action"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ROOM_JOINED = "room_joined"
    ROOMS_UPDATE = "rooms_update"
    PLAYERS_UPDATE = "players_update"
    CHAT = "chat"
    GAME_STATE = "game_state"
    GAME_NOTIFICATION = "game_notification"
    GAME_ENDED = "game_ended"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes produced by the transport itself."""
    INVALID_EVENT = "INVALID_EVENT"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    NOT_HOST = "NOT_HOST"
    INTERNAL = "INTERNAL"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    type: EventType = EventType.CREATE_ROOM
    room_name: str = Field(..., min_length=1, max_length=50)
    player_name: str = Field(..., min_length=1, max_length=30)
    is_private: bool = False
    password: Optional[str] = Field(default=None, max_length=50)
    max_players: Optional[int] = Field(default=None, ge=2, le=6)


class JoinRoomEvent(BaseEvent):
    type: EventType = EventType.JOIN_ROOM
    room_id: str = Field(..., min_length=1, max_length=50)
    player_name: str = Field(..., min_length=1, max_length=30)
    player_id: Optional[str] = None
    password: Optional[str] = None


class ReconnectEvent(BaseEvent):
    """Rejoin a room under a previously issued player id."""
    type: EventType = EventType.RECONNECT
    room_id: str = Field(..., min_length=1, max_length=50)
    player_id: str = Field(..., min_length=1)
    player_name: Optional[str] = Field(default=None, max_length=30)


class LeaveRoomEvent(BaseEvent):
    type: EventType = EventType.LEAVE_ROOM


class ChatEvent(BaseEvent):
    """Chat message event."""
    type: EventType = EventType.CHAT
    text: str = Field(..., min_length=1, max_length=200)


class GameStartEvent(BaseEvent):
    type: EventType = EventType.GAME_START
    game_id: str = "coup"
    seed: Optional[int] = None


class GameActionEvent(BaseEvent):
    """A move in the running game; ``payload`` carries target or card choices."""
    type: EventType = EventType.GAME_ACTION
    action_type: str = Field(..., min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    ReconnectEvent,
    LeaveRoomEvent,
    ChatEvent,
    GameStartEvent,
    GameActionEvent,
    RequestStateEvent,
]


# Outbound event models
class RoomJoinedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.ROOM_JOINED
    room: Dict[str, Any]
    player: Dict[str, Any]
    timestamp: float


class RoomsUpdateEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.ROOMS_UPDATE
    rooms: List[Dict[str, Any]]
    timestamp: float


class PlayersUpdateEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.PLAYERS_UPDATE
    room_id: str
    players: List[Dict[str, Any]]
    timestamp: float


class ChatMessageEvent(BaseModel):
    """Chat message event."""
    type: OutboundEventType = OutboundEventType.CHAT
    player_id: str
    player_name: str
    text: str
    timestamp: float


class GameStateEvent(BaseModel):
    """Full game state, sanitized for one viewer."""
    type: OutboundEventType = OutboundEventType.GAME_STATE
    state: Dict[str, Any]
    timestamp: float


class GameNotificationEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.GAME_NOTIFICATION
    event: str
    data: Dict[str, Any]
    timestamp: float


class GameEndedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.GAME_ENDED
    room_id: str
    winner_id: Optional[str] = None
    reason: str
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str
    timestamp: float


OutboundEvent = Union[
    RoomJoinedEvent,
    RoomsUpdateEvent,
    PlayersUpdateEvent,
    ChatMessageEvent,
    GameStateEvent,
    GameNotificationEvent,
    GameEndedEvent,
    ErrorEvent,
]

EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.RECONNECT: ReconnectEvent,
    EventType.LEAVE_ROOM: LeaveRoomEvent,
    EventType.CHAT: ChatEvent,
    EventType.GAME_START: GameStartEvent,
    EventType.GAME_ACTION: GameActionEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    try:
        return EVENT_MAP[event_type](**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors()[0]['msg']}")


def create_error_event(code: Union[ErrorCode, str], message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=getattr(code, "value", code),
        message=message,
        timestamp=time.time()
    )


def create_room_joined_event(room: Dict[str, Any], player: Dict[str, Any]) -> RoomJoinedEvent:
    return RoomJoinedEvent(room=room, player=player, timestamp=time.time())


def create_rooms_update_event(rooms: List[Dict[str, Any]]) -> RoomsUpdateEvent:
    return RoomsUpdateEvent(rooms=rooms, timestamp=time.time())


def create_players_update_event(room_id: str, players: List[Dict[str, Any]]) -> PlayersUpdateEvent:
    return PlayersUpdateEvent(room_id=room_id, players=players, timestamp=time.time())


def create_chat_event(player_id: str, player_name: str, text: str) -> ChatMessageEvent:
    """Create a chat message event."""
    return ChatMessageEvent(
        player_id=player_id,
        player_name=player_name,
        text=text,
        timestamp=time.time()
    )


def create_game_state_event(state: Dict[str, Any]) -> GameStateEvent:
    return GameStateEvent(state=state, timestamp=time.time())


def create_notification_event(event: str, data: Dict[str, Any]) -> GameNotificationEvent:
    return GameNotificationEvent(event=event, data=data, timestamp=time.time())


def create_game_ended_event(room_id: str, winner_id: Optional[str], reason: str) -> GameEndedEvent:
    return GameEndedEvent(room_id=room_id, winner_id=winner_id, reason=reason, timestamp=time.time())
