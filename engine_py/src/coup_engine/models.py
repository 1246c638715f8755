"""Game models and data structures"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .rules import RuleConfig, default_rules

if TYPE_CHECKING:
    from .actions import ActionType
    from .deck import Deck


class Card(str, Enum):
    DUKE = "Duke"
    ASSASSIN = "Assassin"
    CAPTAIN = "Captain"
    AMBASSADOR = "Ambassador"
    CONTESSA = "Contessa"


@dataclass
class Player:
    id: str
    name: str
    seat: int
    coins: int = 0
    hidden: List[Card] = field(default_factory=list)  # influence, face down
    revealed: List[Card] = field(default_factory=list)  # lost influence, face up
    alive: bool = True


@dataclass
class PendingAction:
    """A claimed action waiting for block/challenge/resolve responses."""
    action_type: "ActionType"
    initiator_id: str
    target_id: Optional[str] = None
    blocker_id: Optional[str] = None
    blocking_card: Optional[Card] = None
    responded: List[str] = field(default_factory=list)
    claim_verified: bool = False  # initiator survived a challenge
    block_disproven: bool = False

    @property
    def is_blocked(self) -> bool:
        return self.blocker_id is not None

    @property
    def claimant_id(self) -> str:
        """Player whose claim is currently live."""
        return self.blocker_id if self.blocker_id else self.initiator_id


@dataclass
class PendingExchange:
    player_id: str
    cards: List[Card]
    keep: int


@dataclass
class PendingCardLoss:
    player_id: str
    reason: str = ""


@dataclass
class ActionLogEntry:
    player_name: str
    action: str
    outcome: str
    turn_number: int
    target: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: float = field(default_factory=time.time)


@dataclass
class Notification:
    """Out-of-band event for the session adapter to deliver.

    ``player_id`` of None means the whole room.
    """
    event: str
    data: Dict[str, Any] = field(default_factory=dict)
    player_id: Optional[str] = None


@dataclass
class GameState:
    room_id: str
    players: List[Player] = field(default_factory=list)  # seat order is turn order
    deck: "Deck" = None
    current_turn_player_id: Optional[str] = None
    turn_number: int = 1
    pending_action: Optional[PendingAction] = None
    pending_exchange: Optional[PendingExchange] = None
    pending_card_loss: Optional[PendingCardLoss] = None
    winner_id: Optional[str] = None
    action_log: List[ActionLogEntry] = field(default_factory=list)
    version: int = 0
    rules: RuleConfig = field(default_factory=lambda: default_rules)

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def alive_players(self) -> List[Player]:
        return [p for p in self.players if p.alive]

    @property
    def is_over(self) -> bool:
        return self.winner_id is not None

    @property
    def is_settled(self) -> bool:
        """No response window or choice is outstanding."""
        return (
            self.pending_action is None
            and self.pending_exchange is None
            and self.pending_card_loss is None
        )

    def log(self, player_name: str, action: str, outcome: str, target: Optional[str] = None):
        self.action_log.append(ActionLogEntry(
            player_name=player_name,
            action=action,
            outcome=outcome,
            turn_number=self.turn_number,
            target=target,
        ))

    def increment_version(self):
        self.version += 1
