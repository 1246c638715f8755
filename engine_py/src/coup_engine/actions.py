"""
Action variants accepted by the engine.

Each action type has its own dataclass carrying only the fields it needs.
The set is closed: ``ACTION_CLASSES`` maps every ``ActionType`` to exactly
one variant, and the engine's handler table is checked against it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from .errors import InvalidAction
from .models import Card


class ActionType(str, Enum):
    INCOME = "INCOME"
    FOREIGN_AID = "FOREIGN_AID"
    TAX = "TAX"
    COUP = "COUP"
    ASSASSINATE = "ASSASSINATE"
    STEAL = "STEAL"
    EXCHANGE = "EXCHANGE"
    BLOCK = "BLOCK"
    CHALLENGE = "CHALLENGE"
    RESOLVE = "RESOLVE"
    LOSE_CARD = "LOSE_CARD"
    EXCHANGE_CARDS = "EXCHANGE_CARDS"


@dataclass(frozen=True)
class Action:
    player_id: str

    type: ClassVar[ActionType]


@dataclass(frozen=True)
class Income(Action):
    type: ClassVar[ActionType] = ActionType.INCOME


@dataclass(frozen=True)
class ForeignAid(Action):
    type: ClassVar[ActionType] = ActionType.FOREIGN_AID


@dataclass(frozen=True)
class Tax(Action):
    type: ClassVar[ActionType] = ActionType.TAX


@dataclass(frozen=True)
class Coup(Action):
    target_id: Optional[str] = None
    type: ClassVar[ActionType] = ActionType.COUP


@dataclass(frozen=True)
class Assassinate(Action):
    target_id: Optional[str] = None
    type: ClassVar[ActionType] = ActionType.ASSASSINATE


@dataclass(frozen=True)
class Steal(Action):
    target_id: Optional[str] = None
    type: ClassVar[ActionType] = ActionType.STEAL


@dataclass(frozen=True)
class Exchange(Action):
    type: ClassVar[ActionType] = ActionType.EXCHANGE


@dataclass(frozen=True)
class Block(Action):
    card: Optional[Card] = None  # role claimed to justify the block
    type: ClassVar[ActionType] = ActionType.BLOCK


@dataclass(frozen=True)
class Challenge(Action):
    type: ClassVar[ActionType] = ActionType.CHALLENGE


@dataclass(frozen=True)
class Resolve(Action):
    type: ClassVar[ActionType] = ActionType.RESOLVE


@dataclass(frozen=True)
class LoseCard(Action):
    card: Optional[Card] = None
    type: ClassVar[ActionType] = ActionType.LOSE_CARD


@dataclass(frozen=True)
class ExchangeCards(Action):
    cards: Tuple[Card, ...] = ()
    type: ClassVar[ActionType] = ActionType.EXCHANGE_CARDS


ACTION_CLASSES = {
    ActionType.INCOME: Income,
    ActionType.FOREIGN_AID: ForeignAid,
    ActionType.TAX: Tax,
    ActionType.COUP: Coup,
    ActionType.ASSASSINATE: Assassinate,
    ActionType.STEAL: Steal,
    ActionType.EXCHANGE: Exchange,
    ActionType.BLOCK: Block,
    ActionType.CHALLENGE: Challenge,
    ActionType.RESOLVE: Resolve,
    ActionType.LOSE_CARD: LoseCard,
    ActionType.EXCHANGE_CARDS: ExchangeCards,
}

# Actions that may be taken on one's own turn with no response window open
PRIMARY_ACTIONS = frozenset({
    ActionType.INCOME,
    ActionType.FOREIGN_AID,
    ActionType.TAX,
    ActionType.COUP,
    ActionType.ASSASSINATE,
    ActionType.STEAL,
    ActionType.EXCHANGE,
})

RESPONSE_ACTIONS = frozenset({
    ActionType.BLOCK,
    ActionType.CHALLENGE,
    ActionType.RESOLVE,
})

TARGETED_ACTIONS = frozenset({
    ActionType.COUP,
    ActionType.ASSASSINATE,
    ActionType.STEAL,
})


def parse_action(action_type, player_id: str, payload: Optional[Dict[str, Any]] = None) -> Action:
    """
    Build an action variant from a type name and a loose payload.

    Raises:
        InvalidAction: If the type is unknown or a card name is not a role.
    """
    payload = payload or {}
    try:
        action_type = ActionType(action_type)
    except ValueError:
        raise InvalidAction(f"Unknown action type: {action_type}")

    cls = ACTION_CLASSES[action_type]
    try:
        if action_type in TARGETED_ACTIONS:
            return cls(player_id=player_id, target_id=payload.get("target_id"))
        if action_type in (ActionType.BLOCK, ActionType.LOSE_CARD):
            card = payload.get("card")
            return cls(player_id=player_id, card=Card(card) if card is not None else None)
        if action_type == ActionType.EXCHANGE_CARDS:
            return cls(player_id=player_id, cards=tuple(Card(c) for c in payload.get("cards") or ()))
    except ValueError as e:
        raise InvalidAction(f"Invalid payload for {action_type.value}: {e}")
    return cls(player_id=player_id)
