"""Game constants and claim tables"""

from typing import Dict, Optional, Tuple

from .actions import ActionType
from .models import Card

GAME_ID = "coup"

ALL_CARDS: Tuple[Card, ...] = (
    Card.DUKE,
    Card.ASSASSIN,
    Card.CAPTAIN,
    Card.AMBASSADOR,
    Card.CONTESSA,
)

# Role a player implicitly claims when declaring the action
REQUIRED_CARD: Dict[ActionType, Card] = {
    ActionType.TAX: Card.DUKE,
    ActionType.ASSASSINATE: Card.ASSASSIN,
    ActionType.STEAL: Card.CAPTAIN,
    ActionType.EXCHANGE: Card.AMBASSADOR,
}

# Roles that may be claimed to block the action
BLOCKING_CARDS: Dict[ActionType, Tuple[Card, ...]] = {
    ActionType.FOREIGN_AID: (Card.DUKE,),
    ActionType.ASSASSINATE: (Card.CONTESSA,),
    ActionType.STEAL: (Card.AMBASSADOR, Card.CAPTAIN),
}

# Only the target may block these
TARGET_ONLY_BLOCKS = frozenset({ActionType.ASSASSINATE})

# Human readable names used in the action log
ACTION_NAMES: Dict[ActionType, str] = {
    ActionType.INCOME: "Income",
    ActionType.FOREIGN_AID: "Foreign Aid",
    ActionType.TAX: "Tax",
    ActionType.COUP: "Coup",
    ActionType.ASSASSINATE: "Assassinate",
    ActionType.STEAL: "Steal",
    ActionType.EXCHANGE: "Exchange",
    ActionType.BLOCK: "Block",
    ActionType.CHALLENGE: "Challenge",
    ActionType.RESOLVE: "Resolve",
    ActionType.LOSE_CARD: "Lose Card",
    ActionType.EXCHANGE_CARDS: "Exchange Cards",
}

# Notification events
NOTIFY_CHOOSE_CARD_TO_LOSE = "choose_card_to_lose"
NOTIFY_CHOOSE_EXCHANGE_CARDS = "choose_exchange_cards"
NOTIFY_CHOOSE_BLOCK_CARD = "choose_block_card"
NOTIFY_BLOCK_ACTION = "block_action"
NOTIFY_CHALLENGE_RESULT = "challenge_result"
NOTIFY_PLAYER_ELIMINATED = "player_eliminated"
NOTIFY_GAME_OVER = "game_over"

# Game phases, derived from the pending sub-states
PHASE_AWAITING_ACTION = "awaiting_action"
PHASE_AWAITING_RESPONSE = "awaiting_response"
PHASE_AWAITING_CARD_LOSS = "awaiting_card_loss"
PHASE_AWAITING_EXCHANGE = "awaiting_exchange"
PHASE_GAME_OVER = "game_over"


def required_card_for(action_type: ActionType) -> Optional[Card]:
    return REQUIRED_CARD.get(action_type)


def blocking_cards_for(action_type: ActionType) -> Tuple[Card, ...]:
    return BLOCKING_CARDS.get(action_type, ())


def is_blockable(action_type: ActionType) -> bool:
    return bool(blocking_cards_for(action_type))


def is_challengeable(action_type: ActionType) -> bool:
    return action_type in REQUIRED_CARD
