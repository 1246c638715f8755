"""
Session lifecycle: one game instance per room.

The manager owns every running game. Actions for a room are serialized by
that room's lock; different rooms never wait on each other.
"""

import logging
import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from .actions import Action
from .engine import CoupGame, EngineResult
from .errors import GameAlreadyActive, GameNotFound, UnknownGame
from .models import GameState

logger = logging.getLogger(__name__)

DEFAULT_GAME_TIMEOUT = 30 * 60


@dataclass
class GameInstance:
    room_id: str
    game_id: str
    state: GameState
    start_time: float
    last_activity: float
    actions_applied: int = 0
    player_ids: List[str] = field(default_factory=list)


class GameSessionManager:
    def __init__(
        self,
        game_timeout: float = DEFAULT_GAME_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self.game_timeout = game_timeout
        self.clock = clock
        self.games: Dict[str, Any] = {}
        self.instances: Dict[str, GameInstance] = {}
        self.room_locks = defaultdict(threading.Lock)
        self.register_game(CoupGame())

    def register_game(self, game):
        """Make a game definition available to ``start_game``."""
        self.games[game.game_id] = game
        logger.info(f"Registered game: {game.game_id}")

    def get_game(self, game_id: str):
        game = self.games.get(game_id)
        if game is None:
            raise UnknownGame(f"Unknown game: {game_id}")
        return game

    def start_game(
        self,
        room_id: str,
        game_id: str,
        players: Iterable[Any],
        seed: Optional[int] = None,
    ) -> GameState:
        """
        Start a game in a room.

        Raises:
            UnknownGame: If no game is registered under ``game_id``
            GameAlreadyActive: If the room already has a running game
            InvalidPlayerCount: If the roster is rejected by the game
        """
        game = self.get_game(game_id)
        with self.room_locks[room_id]:
            if room_id in self.instances:
                raise GameAlreadyActive(room_id)

            players = list(players)
            state = game.init_game(room_id, players, seed=seed)
            now = self.clock()
            self.instances[room_id] = GameInstance(
                room_id=room_id,
                game_id=game_id,
                state=state,
                start_time=now,
                last_activity=now,
                player_ids=[p.id for p in state.players],
            )
            logger.info(f"Started {game_id} in room {room_id} with {len(players)} players")
            return state

    def handle_action(self, room_id: str, action: Action) -> EngineResult:
        """
        Validate and apply an action to the room's game.

        Invalid actions come back as a failed ``EngineResult``; the stored
        state only changes on success.

        Raises:
            GameNotFound: If the room has no running game
        """
        with self.room_locks[room_id]:
            instance = self.instances.get(room_id)
            if instance is None:
                raise GameNotFound(room_id)

            game = self.games[instance.game_id]
            result = game.apply_action(instance.state, action)
            instance.last_activity = self.clock()
            if result.success:
                instance.state = result.state
                instance.actions_applied += 1
            else:
                logger.debug(
                    f"Room {room_id}: rejected {action.type.value} from {action.player_id}: "
                    f"{result.error_code} {result.error_message}"
                )
            return result

    def get_state(self, room_id: str) -> Optional[GameState]:
        with self.room_locks[room_id]:
            instance = self.instances.get(room_id)
            if instance is None:
                return None
            instance.last_activity = self.clock()
            return instance.state

    def end_game(self, room_id: str) -> bool:
        with self.room_locks[room_id]:
            instance = self.instances.pop(room_id, None)
        if instance is None:
            return False
        logger.info(f"Ended {instance.game_id} in room {room_id}")
        return True

    def is_game_active(self, room_id: str) -> bool:
        return room_id in self.instances

    def cleanup_inactive(self, now: Optional[float] = None) -> List[str]:
        """Drop games idle for longer than ``game_timeout``; returns their rooms."""
        now = self.clock() if now is None else now
        candidates = [
            room_id for room_id, instance in list(self.instances.items())
            if now - instance.last_activity > self.game_timeout
        ]
        stale = []
        for room_id in candidates:
            with self.room_locks[room_id]:
                # The room may have seen an action since the snapshot
                instance = self.instances.get(room_id)
                if instance is None or now - instance.last_activity <= self.game_timeout:
                    continue
                del self.instances[room_id]
            stale.append(room_id)
            logger.info(f"Cleaned up inactive {instance.game_id} game in room {room_id}")
        return stale

    def get_game_info(self, room_id: str) -> Optional[Dict[str, Any]]:
        instance = self.instances.get(room_id)
        if instance is None:
            return None
        return {
            "room_id": room_id,
            "game_id": instance.game_id,
            "start_time": instance.start_time,
            "last_activity": instance.last_activity,
            "actions_applied": instance.actions_applied,
            "player_count": len(instance.player_ids),
            "winner_id": instance.state.winner_id,
        }

    def get_stats(self) -> Dict[str, Any]:
        by_game: Dict[str, int] = defaultdict(int)
        for instance in self.instances.values():
            by_game[instance.game_id] += 1
        return {
            "active_games": len(self.instances),
            "registered_games": sorted(self.games),
            "games_by_type": dict(by_game),
        }
