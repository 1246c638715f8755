"""
Coup game engine.

The engine is functional: ``apply_action`` never touches the state it is given.
It validates, applies the action to a deep copy and returns an ``EngineResult``
carrying the new state plus any notifications the caller must deliver.
"""

import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from .actions import Action, ActionType, parse_action
from .challenge import resolve_challenge
from .constants import (
    ACTION_NAMES, GAME_ID, NOTIFY_BLOCK_ACTION, NOTIFY_CHOOSE_BLOCK_CARD,
    blocking_cards_for,
)
from .deck import Deck
from .effects import (
    apply_claim_effect, complete_card_loss, complete_exchange, lose_influence,
)
from .errors import DeckExhausted, GameError, InvalidPlayerCount
from .models import GameState, Notification, PendingAction, Player
from .pending import all_responded, record_response
from .rules import RuleConfig, default_rules
from .validate import ValidationResult, validate_action

logger = logging.getLogger(__name__)


class EngineResult:
    """Result of applying an action."""

    def __init__(
        self,
        success: bool,
        state: GameState,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        notifications: Optional[List[Notification]] = None,
    ):
        self.success = success
        self.state = state
        self.error_code = error_code
        self.error_message = error_message
        self.notifications = notifications or []

    def __repr__(self) -> str:
        if self.success:
            return f"EngineResult(success=True, version={self.state.version}, notifications={len(self.notifications)})"
        return f"EngineResult(success=False, error_code={self.error_code!r}, error_message={self.error_message!r})"

    @classmethod
    def ok(cls, state: GameState, notifications: Optional[List[Notification]] = None) -> 'EngineResult':
        return cls(True, state, notifications=notifications)

    @classmethod
    def fail(cls, state: GameState, error_code: str, error_message: str) -> 'EngineResult':
        return cls(False, state, error_code=error_code, error_message=error_message)


def _normalize_roster(players: Iterable[Any]) -> List[tuple]:
    roster = []
    for entry in players:
        if isinstance(entry, dict):
            name = entry.get("name") or entry.get("displayName") or entry["id"]
            roster.append((entry["id"], name))
        elif isinstance(entry, Player):
            roster.append((entry.id, entry.name))
        else:
            player_id, name = entry
            roster.append((player_id, name))
    return roster


def init_game(
    room_id: str,
    players: Iterable[Any],
    rules: Optional[RuleConfig] = None,
    seed: Optional[int] = None,
) -> GameState:
    """
    Deal a new game.

    Args:
        room_id: Room the game belongs to
        players: Ordered roster; ``{"id", "name"}`` dicts or ``(id, name)`` pairs
        rules: Rule configuration (defaults to ``default_rules``)
        seed: Optional seed for a reproducible shuffle

    Returns:
        Initial game state, first player to move

    Raises:
        InvalidPlayerCount: If the roster size is outside the allowed range
            or contains duplicate ids
    """
    rules = rules or default_rules
    roster = _normalize_roster(players)

    if not rules.validate_player_count(len(roster)):
        raise InvalidPlayerCount(
            f"Coup needs {rules.min_players}-{rules.max_players} players, got {len(roster)}"
        )
    if len({player_id for player_id, _ in roster}) != len(roster):
        raise InvalidPlayerCount("Player ids must be unique")

    deck = Deck.full(rules.copies_per_card, seed=seed)
    state = GameState(room_id=room_id, deck=deck, rules=rules)
    for seat, (player_id, name) in enumerate(roster):
        state.players.append(Player(
            id=player_id,
            name=name,
            seat=seat,
            coins=rules.starting_coins,
            hidden=deck.draw(rules.cards_per_player),
        ))

    state.current_turn_player_id = state.players[0].id
    state.log(state.players[0].name, "Game Start", f"Game started! {state.players[0].name} goes first.")
    logger.info(f"Room {room_id}: dealt a game for {len(roster)} players")
    return state


def advance_turn(state: GameState):
    """Pass the turn to the next living player in seat order."""
    players = sorted(state.players, key=lambda p: p.seat)
    idx = next((i for i, p in enumerate(players) if p.id == state.current_turn_player_id), 0)
    n = len(players)
    for i in range(1, n + 1):
        nxt = players[(idx + i) % n]
        if nxt.alive:
            if idx + i >= n:
                state.turn_number += 1
            state.current_turn_player_id = nxt.id
            return
    state.current_turn_player_id = None


def _settle_responses(state: GameState, notes: List[Notification]):
    """Close the response window once everybody who may respond has passed."""
    pending = state.pending_action
    if pending is None or state.pending_card_loss is not None or state.is_over:
        return
    if not all_responded(state, pending):
        return

    if pending.is_blocked:
        blocker = state.get_player(pending.blocker_id)
        state.pending_action = None
        state.log(
            blocker.name, "Block",
            f"blocked {ACTION_NAMES[pending.action_type]} with {pending.blocking_card.value}.",
        )
    else:
        apply_claim_effect(state, notes)


# Action handlers. Each mutates the copy it is given and returns False only
# when the action was accepted without changing anything.

def _handle_income(state: GameState, action: Action, notes: List[Notification]) -> bool:
    player = state.get_player(action.player_id)
    player.coins += state.rules.income_amount
    state.log(player.name, "Income", f"gained {state.rules.income_amount} coin.")
    return True


def _handle_coup(state: GameState, action: Action, notes: List[Notification]) -> bool:
    player = state.get_player(action.player_id)
    target = state.get_player(action.target_id)
    player.coins -= state.rules.coup_cost
    state.log(player.name, "Coup", f"launched a coup against {target.name}.", target=target.name)
    lose_influence(state, target.id, notes, reason="coup")
    return True


def _handle_claim(state: GameState, action: Action, notes: List[Notification]) -> bool:
    """Open a response window for a blockable or challengeable action."""
    player = state.get_player(action.player_id)
    target_id = getattr(action, "target_id", None)
    target = state.get_player(target_id)

    if action.type == ActionType.ASSASSINATE:
        player.coins -= state.rules.assassinate_cost

    state.pending_action = PendingAction(
        action_type=action.type,
        initiator_id=player.id,
        target_id=target_id,
    )
    outcome = f"declared {ACTION_NAMES[action.type]}"
    if target:
        outcome += f" against {target.name}"
    state.log(player.name, ACTION_NAMES[action.type], outcome + ".", target=target.name if target else None)
    return True


def _handle_block(state: GameState, action: Action, notes: List[Notification]) -> bool:
    pending = state.pending_action
    blocker = state.get_player(action.player_id)
    options = blocking_cards_for(pending.action_type)

    card = action.card
    if card is None:
        if len(options) > 1:
            notes.append(Notification(
                NOTIFY_CHOOSE_BLOCK_CARD,
                {
                    "action_type": pending.action_type.value,
                    "options": [c.value for c in options],
                },
                player_id=blocker.id,
            ))
            return False
        card = options[0]

    pending.blocker_id = blocker.id
    pending.blocking_card = card
    pending.responded = []

    state.log(
        blocker.name, "Block",
        f"claims {card.value} to block {ACTION_NAMES[pending.action_type]}.",
        target=state.get_player(pending.initiator_id).name,
    )
    notes.append(Notification(NOTIFY_BLOCK_ACTION, {
        "blocker_id": blocker.id,
        "initiator_id": pending.initiator_id,
        "action_type": pending.action_type.value,
        "card": card.value,
    }))
    return True


def _handle_challenge(state: GameState, action: Action, notes: List[Notification]) -> bool:
    resolve_challenge(state, action.player_id, notes)
    _settle_responses(state, notes)
    return True


def _handle_resolve(state: GameState, action: Action, notes: List[Notification]) -> bool:
    record_response(state.pending_action, action.player_id)
    _settle_responses(state, notes)
    return True


def _handle_lose_card(state: GameState, action: Action, notes: List[Notification]) -> bool:
    complete_card_loss(state, action.player_id, action.card, notes)
    _settle_responses(state, notes)
    return True


def _handle_exchange_cards(state: GameState, action: Action, notes: List[Notification]) -> bool:
    complete_exchange(state, action.player_id, list(action.cards))
    return True


Handler = Callable[[GameState, Action, List[Notification]], bool]

HANDLERS: Dict[ActionType, Handler] = {
    ActionType.INCOME: _handle_income,
    ActionType.FOREIGN_AID: _handle_claim,
    ActionType.TAX: _handle_claim,
    ActionType.COUP: _handle_coup,
    ActionType.ASSASSINATE: _handle_claim,
    ActionType.STEAL: _handle_claim,
    ActionType.EXCHANGE: _handle_claim,
    ActionType.BLOCK: _handle_block,
    ActionType.CHALLENGE: _handle_challenge,
    ActionType.RESOLVE: _handle_resolve,
    ActionType.LOSE_CARD: _handle_lose_card,
    ActionType.EXCHANGE_CARDS: _handle_exchange_cards,
}


def apply_action(state: GameState, action: Action) -> EngineResult:
    """
    Validate and apply an action.

    Args:
        state: Current game state (left untouched)
        action: Action to apply

    Returns:
        EngineResult with the new state on success, or the original state and
        an error code on rejection
    """
    validation = validate_action(state, action)
    if not validation:
        return EngineResult.fail(state, validation.error_code, validation.error_message)

    new_state = copy.deepcopy(state)
    notes: List[Notification] = []
    try:
        changed = HANDLERS[action.type](new_state, action, notes)
    except DeckExhausted as e:
        logger.error(f"Room {state.room_id}: deck exhausted while applying {action.type.value}: {e.message}")
        return EngineResult.fail(state, e.code, e.message)
    except GameError as e:
        return EngineResult.fail(state, e.code, e.message)

    if not changed:
        return EngineResult.ok(state, notes)

    if new_state.is_settled and not new_state.is_over:
        advance_turn(new_state)

    new_state.increment_version()
    logger.debug(
        f"Room {state.room_id}: {action.player_id} {action.type.value} accepted (v{new_state.version})"
    )
    return EngineResult.ok(new_state, notes)


class CoupGame:
    """Game definition registered with the session manager."""

    game_id = GAME_ID

    def __init__(self, rules: Optional[RuleConfig] = None):
        self.rules = rules or default_rules

    def init_game(self, room_id: str, players: Iterable[Any], seed: Optional[int] = None) -> GameState:
        return init_game(room_id, players, rules=self.rules, seed=seed)

    def parse_action(self, action_type: str, player_id: str, payload: Optional[Dict[str, Any]] = None) -> Action:
        return parse_action(action_type, player_id, payload)

    def validate_action(self, state: GameState, action: Action) -> ValidationResult:
        return validate_action(state, action)

    def apply_action(self, state: GameState, action: Action) -> EngineResult:
        return apply_action(state, action)
