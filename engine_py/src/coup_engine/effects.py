"""
Effects of resolved claims and influence loss.

Every function here mutates the state it is given; the engine hands them a
private copy. Out-of-band prompts are appended to ``notes``.
"""

import logging
from collections import Counter
from typing import List

from .actions import ActionType
from .constants import (
    ACTION_NAMES, NOTIFY_CHOOSE_CARD_TO_LOSE, NOTIFY_CHOOSE_EXCHANGE_CARDS,
    NOTIFY_GAME_OVER, NOTIFY_PLAYER_ELIMINATED,
)
from .models import (
    Card, GameState, Notification, PendingCardLoss, PendingExchange, Player,
)

logger = logging.getLogger(__name__)


def check_winner(state: GameState, notes: List[Notification]) -> bool:
    """Set the winner once exactly one player is alive."""
    alive = state.alive_players()
    if len(alive) != 1:
        return False
    winner = alive[0]
    state.winner_id = winner.id
    state.current_turn_player_id = winner.id
    state.pending_action = None
    state.pending_exchange = None
    state.pending_card_loss = None
    state.log(winner.name, "Game Over", f"{winner.name} wins the game!")
    notes.append(Notification(NOTIFY_GAME_OVER, {"winner_id": winner.id}))
    logger.info(f"Room {state.room_id}: {winner.name} ({winner.id}) wins")
    return True


def reveal_card(state: GameState, player: Player, card: Card, notes: List[Notification]):
    """Turn one hidden card face up; eliminates the player on their last card."""
    player.hidden.remove(card)
    player.revealed.append(card)
    state.log(player.name, "Lose Influence", f"revealed {card.value}.")

    if not player.hidden:
        player.alive = False
        state.log(player.name, "Eliminated", f"{player.name} has no influence left.")
        notes.append(Notification(NOTIFY_PLAYER_ELIMINATED, {"player_id": player.id}))
        check_winner(state, notes)


def lose_influence(state: GameState, player_id: str, notes: List[Notification], reason: str = ""):
    """
    Make a player lose one influence.

    With a single card left the loss is immediate. Otherwise the player is
    asked which card to reveal, unless ``auto_influence_loss`` is set, in which
    case the most recently added card goes.
    """
    player = state.get_player(player_id)
    if player is None or not player.alive:
        return

    if len(player.hidden) == 1 or state.rules.auto_influence_loss:
        reveal_card(state, player, player.hidden[-1], notes)
        return

    state.pending_card_loss = PendingCardLoss(player_id=player.id, reason=reason)
    notes.append(Notification(
        NOTIFY_CHOOSE_CARD_TO_LOSE,
        {"cards": [c.value for c in player.hidden], "reason": reason},
        player_id=player.id,
    ))


def complete_card_loss(state: GameState, player_id: str, card: Card, notes: List[Notification]):
    player = state.get_player(player_id)
    state.pending_card_loss = None
    reveal_card(state, player, card, notes)


def start_exchange(state: GameState, player: Player, notes: List[Notification]):
    """Draw cards into the player's hand and ask which ones to keep."""
    keep = len(player.hidden)
    draw_count = min(state.rules.exchange_draw, len(state.deck))
    drawn = state.deck.draw(draw_count)
    player.hidden.extend(drawn)

    state.pending_exchange = PendingExchange(
        player_id=player.id,
        cards=list(player.hidden),
        keep=keep,
    )
    notes.append(Notification(
        NOTIFY_CHOOSE_EXCHANGE_CARDS,
        {"available_cards": [c.value for c in player.hidden], "cards_to_keep": keep},
        player_id=player.id,
    ))


def complete_exchange(state: GameState, player_id: str, selected: List[Card]):
    """Keep the selected cards and shuffle the rest back into the deck."""
    player = state.get_player(player_id)
    exchange = state.pending_exchange

    returned = Counter(exchange.cards)
    returned.subtract(Counter(selected))
    player.hidden = list(selected)
    state.deck.return_cards(returned.elements())

    state.pending_exchange = None
    state.log(player.name, "Exchange", "exchanged cards with the deck.")


def apply_claim_effect(state: GameState, notes: List[Notification]):
    """
    Apply the effect of the pending action once nobody contests it.

    Clears the pending action.
    """
    pending = state.pending_action
    state.pending_action = None
    rules = state.rules

    actor = state.get_player(pending.initiator_id)
    target = state.get_player(pending.target_id)
    name = ACTION_NAMES[pending.action_type]

    if pending.action_type == ActionType.FOREIGN_AID:
        actor.coins += rules.foreign_aid_amount
        state.log(actor.name, name, f"gained {rules.foreign_aid_amount} coins.")

    elif pending.action_type == ActionType.TAX:
        actor.coins += rules.tax_amount
        state.log(actor.name, name, f"gained {rules.tax_amount} coins from Tax.")

    elif pending.action_type == ActionType.STEAL:
        stolen = min(rules.steal_amount, target.coins)
        target.coins -= stolen
        actor.coins += stolen
        state.log(actor.name, name, f"stole {stolen} coins from {target.name}.", target=target.name)

    elif pending.action_type == ActionType.ASSASSINATE:
        if target.alive:
            state.log(actor.name, name, f"successfully assassinated {target.name}.", target=target.name)
            lose_influence(state, target.id, notes, reason="assassinated")

    elif pending.action_type == ActionType.EXCHANGE:
        start_exchange(state, actor, notes)

    else:
        raise ValueError(f"{pending.action_type} has no deferred effect")
