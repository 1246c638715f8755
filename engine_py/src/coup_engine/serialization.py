"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, Optional

from .constants import (
    PHASE_AWAITING_ACTION, PHASE_AWAITING_CARD_LOSS, PHASE_AWAITING_EXCHANGE,
    PHASE_AWAITING_RESPONSE, PHASE_GAME_OVER,
)
from .models import ActionLogEntry, GameState, PendingAction
from .pending import eligible_responders

RECENT_LOG_ENTRIES = 20


def get_phase(state: GameState) -> str:
    """Derive the state machine phase from the pending sub-states."""
    if state.is_over:
        return PHASE_GAME_OVER
    if state.pending_card_loss is not None:
        return PHASE_AWAITING_CARD_LOSS
    if state.pending_exchange is not None:
        return PHASE_AWAITING_EXCHANGE
    if state.pending_action is not None:
        return PHASE_AWAITING_RESPONSE
    return PHASE_AWAITING_ACTION


def sanitize_state(state: GameState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize game state for transmission to clients.

    Args:
        state: Game state to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)

    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    sanitized = {
        "room_id": state.room_id,
        "version": state.version,
        "phase": get_phase(state),
        "turn": state.current_turn_player_id,
        "turn_number": state.turn_number,
        "winner_id": state.winner_id,
        "deck_count": len(state.deck) if state.deck is not None else 0,
        "players": [],
        "pending_action": _serialize_pending_action(state, state.pending_action),
        "pending_exchange": None,
        "pending_card_loss": None,
        "action_log": [_serialize_log_entry(e) for e in state.action_log[-RECENT_LOG_ENTRIES:]],
        "rules": state.rules.model_dump(),
    }

    for player in state.players:
        sanitized_player = {
            "id": player.id,
            "name": player.name,
            "seat": player.seat,
            "coins": player.coins,
            "alive": player.alive,
            "revealed": [c.value for c in player.revealed],
            "hidden_count": len(player.hidden),
        }
        # Show hidden cards only to their owner
        if player.id == viewer_id:
            sanitized_player["hidden"] = [c.value for c in player.hidden]
        sanitized["players"].append(sanitized_player)

    if state.pending_exchange is not None:
        exchange = state.pending_exchange
        sanitized["pending_exchange"] = {
            "player_id": exchange.player_id,
            "keep": exchange.keep,
        }
        if exchange.player_id == viewer_id:
            sanitized["pending_exchange"]["cards"] = [c.value for c in exchange.cards]

    if state.pending_card_loss is not None:
        sanitized["pending_card_loss"] = {
            "player_id": state.pending_card_loss.player_id,
            "reason": state.pending_card_loss.reason,
        }

    return sanitized


def _serialize_pending_action(state: GameState, pending: Optional[PendingAction]) -> Optional[Dict[str, Any]]:
    if pending is None:
        return None
    return {
        "action_type": pending.action_type.value,
        "initiator_id": pending.initiator_id,
        "target_id": pending.target_id,
        "blocker_id": pending.blocker_id,
        "blocking_card": pending.blocking_card.value if pending.blocking_card else None,
        "responded": list(pending.responded),
        "awaiting": [pid for pid in eligible_responders(state, pending) if pid not in pending.responded],
        "claim_verified": pending.claim_verified,
        "block_disproven": pending.block_disproven,
    }


def _serialize_log_entry(entry: ActionLogEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "player_name": entry.player_name,
        "action": entry.action,
        "target": entry.target,
        "outcome": entry.outcome,
        "turn_number": entry.turn_number,
        "timestamp": entry.timestamp,
    }


def create_minimal_state_update(state: GameState) -> Dict[str, Any]:
    """Create a minimal state update with only essential information."""
    return {
        "room_id": state.room_id,
        "version": state.version,
        "phase": get_phase(state),
        "turn": state.current_turn_player_id,
        "winner_id": state.winner_id,
        "alive_count": len(state.alive_players()),
    }
