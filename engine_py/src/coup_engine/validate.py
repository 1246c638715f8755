"""
Action validation. Nothing in this module mutates the game state.
"""

from collections import Counter
from typing import Dict, Optional

from .actions import (
    PRIMARY_ACTIONS, RESPONSE_ACTIONS, Action, ActionType,
)
from .constants import ACTION_NAMES, blocking_cards_for
from .errors import (
    EffectPending, IllegalTarget, InvalidAction, NotYourTurn, TerminalState,
    UnknownPlayer,
)
from .models import GameState, Player
from .pending import can_block, can_challenge, can_resolve


class ValidationResult:
    """Result of action validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message

    def __bool__(self) -> bool:
        return self.valid

    def __repr__(self) -> str:
        if self.valid:
            return "ValidationResult(valid=True)"
        return f"ValidationResult(valid=False, error_code={self.error_code!r}, error_message={self.error_message!r})"

    @classmethod
    def success(cls) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def validate_target(state: GameState, player: Player, target_id: Optional[str]) -> ValidationResult:
    """A valid target is another player who is still alive."""
    if not target_id:
        return ValidationResult.error(IllegalTarget.code, "A target is required")
    target = state.get_player(target_id)
    if target is None:
        return ValidationResult.error(IllegalTarget.code, f"Unknown target: {target_id}")
    if target.id == player.id:
        return ValidationResult.error(IllegalTarget.code, "Cannot target yourself")
    if not target.alive:
        return ValidationResult.error(IllegalTarget.code, f"{target.name} is already eliminated")
    return ValidationResult.success()


def _validate_untargeted(state: GameState, player: Player, action: Action) -> ValidationResult:
    return ValidationResult.success()


def _validate_coup(state: GameState, player: Player, action: Action) -> ValidationResult:
    cost = state.rules.coup_cost
    if player.coins < cost:
        return ValidationResult.error(InvalidAction.code, f"Coup costs {cost} coins (you have {player.coins})")
    return validate_target(state, player, action.target_id)


def _validate_assassinate(state: GameState, player: Player, action: Action) -> ValidationResult:
    cost = state.rules.assassinate_cost
    if player.coins < cost:
        return ValidationResult.error(InvalidAction.code, f"Assassination costs {cost} coins (you have {player.coins})")
    return validate_target(state, player, action.target_id)


def _validate_steal(state: GameState, player: Player, action: Action) -> ValidationResult:
    return validate_target(state, player, action.target_id)


def _validate_block(state: GameState, player: Player, action: Action) -> ValidationResult:
    pending = state.pending_action
    if pending is None:
        return ValidationResult.error(InvalidAction.code, "Nothing to block")
    reason = can_block(state, pending, player.id)
    if reason:
        return ValidationResult.error(InvalidAction.code, reason)
    if action.card is not None and action.card not in blocking_cards_for(pending.action_type):
        return ValidationResult.error(
            InvalidAction.code,
            f"{action.card.value} cannot block {ACTION_NAMES[pending.action_type]}"
        )
    return ValidationResult.success()


def _validate_challenge(state: GameState, player: Player, action: Action) -> ValidationResult:
    pending = state.pending_action
    if pending is None:
        return ValidationResult.error(InvalidAction.code, "Nothing to challenge")
    reason = can_challenge(pending, player.id)
    if reason:
        return ValidationResult.error(InvalidAction.code, reason)
    return ValidationResult.success()


def _validate_resolve(state: GameState, player: Player, action: Action) -> ValidationResult:
    pending = state.pending_action
    if pending is None:
        return ValidationResult.error(InvalidAction.code, "Nothing to resolve")
    reason = can_resolve(pending, player.id)
    if reason:
        return ValidationResult.error(InvalidAction.code, reason)
    return ValidationResult.success()


def _validate_lose_card(state: GameState, player: Player, action: Action) -> ValidationResult:
    loss = state.pending_card_loss
    if loss is None or loss.player_id != player.id:
        return ValidationResult.error(InvalidAction.code, "No card loss pending for you")
    if action.card is None or action.card not in player.hidden:
        return ValidationResult.error(InvalidAction.code, "You must choose one of your own cards")
    return ValidationResult.success()


def _validate_exchange_cards(state: GameState, player: Player, action: Action) -> ValidationResult:
    exchange = state.pending_exchange
    if exchange is None or exchange.player_id != player.id:
        return ValidationResult.error(InvalidAction.code, "No exchange pending for you")
    if len(action.cards) != exchange.keep:
        return ValidationResult.error(
            InvalidAction.code,
            f"Must keep exactly {exchange.keep} cards (selected {len(action.cards)})"
        )
    # Multiset containment: duplicates must be present as often as selected
    offered = Counter(exchange.cards)
    chosen = Counter(action.cards)
    if any(chosen[card] > offered[card] for card in chosen):
        return ValidationResult.error(InvalidAction.code, "Selected cards were not offered")
    return ValidationResult.success()


VALIDATORS: Dict[ActionType, object] = {
    ActionType.INCOME: _validate_untargeted,
    ActionType.FOREIGN_AID: _validate_untargeted,
    ActionType.TAX: _validate_untargeted,
    ActionType.EXCHANGE: _validate_untargeted,
    ActionType.COUP: _validate_coup,
    ActionType.ASSASSINATE: _validate_assassinate,
    ActionType.STEAL: _validate_steal,
    ActionType.BLOCK: _validate_block,
    ActionType.CHALLENGE: _validate_challenge,
    ActionType.RESOLVE: _validate_resolve,
    ActionType.LOSE_CARD: _validate_lose_card,
    ActionType.EXCHANGE_CARDS: _validate_exchange_cards,
}


def validate_action(state: GameState, action: Action) -> ValidationResult:
    """
    Validate an action against the current game state.

    Args:
        state: Current game state
        action: Action being attempted

    Returns:
        ValidationResult with validation outcome
    """
    if state.is_over:
        return ValidationResult.error(TerminalState.code, "Game is over")

    player = state.get_player(action.player_id)
    if player is None:
        return ValidationResult.error(UnknownPlayer.code, f"Unknown player: {action.player_id}")
    if not player.alive:
        return ValidationResult.error(InvalidAction.code, f"{player.name} is eliminated")

    # Choices owed by a player block everything else
    if state.pending_card_loss is not None and action.type != ActionType.LOSE_CARD:
        return ValidationResult.error(EffectPending.code, "Waiting for a card to be revealed")
    if state.pending_exchange is not None and action.type != ActionType.EXCHANGE_CARDS:
        return ValidationResult.error(EffectPending.code, "Waiting for an exchange to complete")

    if state.pending_action is not None and action.type in PRIMARY_ACTIONS:
        return ValidationResult.error(
            EffectPending.code,
            "Only block, challenge or resolve are allowed while an action is pending"
        )

    if action.type in PRIMARY_ACTIONS:
        if state.current_turn_player_id != player.id:
            return ValidationResult.error(NotYourTurn.code, "It's not your turn")
        if player.coins >= state.rules.forced_coup_threshold and action.type != ActionType.COUP:
            return ValidationResult.error(
                InvalidAction.code,
                f"With {player.coins} coins you must coup"
            )
    elif action.type in RESPONSE_ACTIONS and state.pending_action is None:
        return ValidationResult.error(InvalidAction.code, "No action is pending")

    validator = VALIDATORS.get(action.type)
    if validator is None:
        return ValidationResult.error(InvalidAction.code, f"Unsupported action: {action.type}")
    return validator(state, player, action)


def is_valid_action(state: GameState, action: Action) -> bool:
    return validate_action(state, action).valid
