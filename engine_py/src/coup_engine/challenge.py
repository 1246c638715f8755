"""
Challenge resolution.

A challenge is settled on the spot by looking at the accused player's hidden
cards. Whoever is wrong loses one influence.
"""

from typing import List

from .constants import ACTION_NAMES, NOTIFY_CHALLENGE_RESULT
from .effects import lose_influence
from .models import GameState, Notification
from .pending import claimed_card, live_claimant, record_response


def resolve_challenge(state: GameState, challenger_id: str, notes: List[Notification]):
    """
    Resolve a challenge against the live claim of the pending action.

    Accused holds the role:
        the challenger loses influence; the accused shuffles the card back and
        draws a replacement. A proven block stands and cancels the action; a
        proven action stays open for the remaining responses.
    Accused does not hold the role:
        the accused loses influence. A bluffed action is cancelled; a bluffed
        block is removed and the action waits for responses again.
    """
    pending = state.pending_action
    accused_id = live_claimant(pending)
    accused = state.get_player(accused_id)
    challenger = state.get_player(challenger_id)
    card = claimed_card(pending)
    against_block = pending.is_blocked
    claim_name = "block" if against_block else ACTION_NAMES[pending.action_type]

    record_response(pending, challenger_id)
    truthful = card in accused.hidden

    notes.append(Notification(NOTIFY_CHALLENGE_RESULT, {
        "challenger_id": challenger.id,
        "accused_id": accused.id,
        "card": card.value,
        "challenge_succeeded": not truthful,
        "against_block": against_block,
    }))

    if truthful:
        state.log(
            challenger.name, "Challenge",
            f"challenged {accused.name}'s {claim_name} but failed. {challenger.name} lost a card.",
            target=accused.name,
        )
        # The proven card goes back and a fresh one is drawn so it stays secret
        accused.hidden.remove(card)
        state.deck.return_cards([card])
        accused.hidden.extend(state.deck.draw(1))

        if against_block:
            state.log(accused.name, "Block", f"{ACTION_NAMES[pending.action_type]} was blocked.")
            state.pending_action = None
        else:
            pending.claim_verified = True

        lose_influence(state, challenger.id, notes, reason="failed challenge")
    else:
        state.log(
            challenger.name, "Challenge",
            f"challenged {accused.name}'s {claim_name} successfully. {accused.name} lost a card.",
            target=accused.name,
        )
        if against_block:
            pending.blocker_id = None
            pending.blocking_card = None
            pending.block_disproven = True
            pending.responded = []
        else:
            state.pending_action = None

        lose_influence(state, accused.id, notes, reason="caught bluffing")
