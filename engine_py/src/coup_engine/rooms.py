"""
In-memory room directory.

Rooms hold the lobby roster. Disconnected players are kept for a grace period
so a page refresh can reconnect under the same player id.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .errors import InvalidPassword, RoomFull, RoomNotFound

logger = logging.getLogger(__name__)

DEFAULT_DISCONNECT_GRACE = 90
DEFAULT_MAX_PLAYERS = 6


@dataclass
class RoomPlayer:
    id: str
    name: str
    is_host: bool = False
    connected: bool = True
    last_seen: float = 0.0


@dataclass
class Room:
    id: str
    name: str
    is_private: bool = False
    password: Optional[str] = None
    max_players: int = DEFAULT_MAX_PLAYERS
    players: List[RoomPlayer] = field(default_factory=list)
    created_at: float = 0.0

    def get_player(self, player_id: str) -> Optional[RoomPlayer]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players


class RoomDirectory:
    def __init__(
        self,
        disconnect_grace: float = DEFAULT_DISCONNECT_GRACE,
        default_max_players: int = DEFAULT_MAX_PLAYERS,
        clock: Callable[[], float] = time.time,
    ):
        self.disconnect_grace = disconnect_grace
        self.default_max_players = default_max_players
        self.clock = clock
        self.rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def create_room(
        self,
        name: str,
        is_private: bool = False,
        password: Optional[str] = None,
        max_players: Optional[int] = None,
    ) -> Room:
        room_id = str(uuid.uuid4())[:8].upper()
        room = Room(
            id=room_id,
            name=name,
            is_private=is_private,
            password=password or None,
            max_players=max_players or self.default_max_players,
            created_at=self.clock(),
        )
        with self._lock:
            self.rooms[room_id] = room
        logger.info(f"Created room {room_id} ({name!r}, private={is_private})")
        return room

    def get_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def check_password(self, room_id: str, password: Optional[str]):
        """Raise ``InvalidPassword`` unless the room is open or the password matches."""
        room = self.get_room(room_id)
        if room.is_private and room.password and room.password != password:
            raise InvalidPassword("Incorrect room password")

    def add_player(
        self,
        room_id: str,
        name: str,
        player_id: Optional[str] = None,
        is_host: bool = False,
    ) -> RoomPlayer:
        """
        Add a player to a room, or reconnect a known one.

        A known ``player_id`` reconnects: the player is marked connected and
        renamed. Otherwise a new player is seated.

        Raises:
            RoomNotFound: If the room does not exist
            RoomFull: If a new player would exceed ``max_players``
        """
        with self._lock:
            room = self.get_room(room_id)
            now = self.clock()

            existing = room.get_player(player_id) if player_id else None
            if existing is not None:
                existing.connected = True
                existing.name = name
                existing.last_seen = now
                logger.info(f"Player {existing.id} reconnected to room {room_id}")
                return existing

            if room.is_full:
                raise RoomFull(f"Room {room_id} is full")

            player = RoomPlayer(
                id=str(uuid.uuid4())[:8],
                name=name,
                is_host=is_host or not room.players,
                last_seen=now,
            )
            room.players.append(player)
            logger.info(f"Player {player.id} ({name}) joined room {room_id}")
            return player

    def mark_disconnected(self, room_id: str, player_id: str) -> bool:
        room = self.rooms.get(room_id)
        if room is None:
            return False
        player = room.get_player(player_id)
        if player is None:
            return False
        player.connected = False
        player.last_seen = self.clock()
        return True

    def sweep_disconnected(self, now: Optional[float] = None) -> List[tuple]:
        """Remove players disconnected for longer than the grace period."""
        now = self.clock() if now is None else now
        expired = [
            (room.id, player.id)
            for room in list(self.rooms.values())
            for player in room.players
            if not player.connected and now - player.last_seen > self.disconnect_grace
        ]
        for room_id, player_id in expired:
            self.remove_player(room_id, player_id)
        return expired

    def remove_player(self, room_id: str, player_id: str) -> bool:
        """Remove a player; empty rooms are deleted and the host seat is handed on."""
        with self._lock:
            room = self.rooms.get(room_id)
            if room is None:
                return False
            player = room.get_player(player_id)
            if player is None:
                return False
            room.players.remove(player)
            logger.info(f"Player {player_id} left room {room_id}")

            if not room.players:
                del self.rooms[room_id]
                logger.info(f"Deleted empty room {room_id}")
            elif not any(p.is_host for p in room.players):
                room.players[0].is_host = True
            return True

    def public_summary(self) -> List[Dict[str, Any]]:
        return [
            {
                "room_id": room.id,
                "name": room.name,
                "player_count": len(room.players),
                "max_players": room.max_players,
                "created_at": room.created_at,
            }
            for room in self.rooms.values()
            if not room.is_private
        ]

    def full_room_data(self, room_id: str) -> Dict[str, Any]:
        room = self.get_room(room_id)
        return {
            "room_id": room.id,
            "name": room.name,
            "is_private": room.is_private,
            "max_players": room.max_players,
            "players": [
                {
                    "id": p.id,
                    "name": p.name,
                    "is_host": p.is_host,
                    "connected": p.connected,
                }
                for p in room.players
            ],
        }
