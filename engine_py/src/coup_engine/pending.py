"""
Response window bookkeeping for a claimed action.

A pending action has one live claim at a time: the blocker's if a block is
attached, otherwise the initiator's. Every other living player must either
pass (RESOLVE), block, or challenge before the claim takes effect.
"""

from typing import List, Optional

from .constants import (
    TARGET_ONLY_BLOCKS, is_blockable, is_challengeable,
    required_card_for,
)
from .models import Card, GameState, PendingAction


def live_claimant(pending: PendingAction) -> str:
    return pending.claimant_id


def claimed_card(pending: PendingAction) -> Optional[Card]:
    """Role the live claimant must hold."""
    if pending.is_blocked:
        return pending.blocking_card
    return required_card_for(pending.action_type)


def eligible_responders(state: GameState, pending: PendingAction) -> List[str]:
    """Living players who may respond to the live claim."""
    claimant = live_claimant(pending)
    return [p.id for p in state.players if p.alive and p.id != claimant]


def has_responded(pending: PendingAction, player_id: str) -> bool:
    return player_id in pending.responded


def record_response(pending: PendingAction, player_id: str):
    if player_id not in pending.responded:
        pending.responded.append(player_id)


def all_responded(state: GameState, pending: PendingAction) -> bool:
    return all(pid in pending.responded for pid in eligible_responders(state, pending))


def can_block(state: GameState, pending: PendingAction, player_id: str) -> Optional[str]:
    """Return the reason the player may not block, or None if they may."""
    if not is_blockable(pending.action_type):
        return f"{pending.action_type.value} cannot be blocked"
    if pending.is_blocked:
        return "Action is already blocked"
    if pending.block_disproven:
        return "A block on this action was already disproven"
    if player_id == pending.initiator_id:
        return "Cannot block your own action"
    if has_responded(pending, player_id):
        return "Already responded to this action"
    if pending.action_type in TARGET_ONLY_BLOCKS and player_id != pending.target_id:
        return f"Only the target can block {pending.action_type.value}"
    return None


def can_challenge(pending: PendingAction, player_id: str) -> Optional[str]:
    """Return the reason the player may not challenge, or None if they may."""
    if player_id == live_claimant(pending):
        return "Cannot challenge your own claim"
    if has_responded(pending, player_id):
        return "Already responded to this claim"
    if pending.is_blocked:
        return None
    if not is_challengeable(pending.action_type):
        return f"{pending.action_type.value} makes no claim to challenge"
    if pending.claim_verified:
        return "Claim was already proven"
    return None


def can_resolve(pending: PendingAction, player_id: str) -> Optional[str]:
    if player_id == live_claimant(pending):
        return "Cannot pass on your own claim"
    if has_responded(pending, player_id):
        return "Already responded to this claim"
    return None