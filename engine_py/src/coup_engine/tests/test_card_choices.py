"""
Tests for the two-phase influence loss, the exchange selection and game over.
"""

import pytest
from coup_engine.actions import (
    Challenge, Coup, Exchange, ExchangeCards, Income, LoseCard, Resolve,
)
from coup_engine.constants import (
    NOTIFY_CHOOSE_CARD_TO_LOSE, NOTIFY_CHOOSE_EXCHANGE_CARDS, NOTIFY_GAME_OVER,
    NOTIFY_PLAYER_ELIMINATED,
)
from coup_engine.deck import validate_deck_integrity
from coup_engine.engine import apply_action
from coup_engine.errors import EFFECT_PENDING, INVALID_ACTION, TERMINAL_STATE
from coup_engine.models import Card


def play(state, *actions):
    result = None
    for action in actions:
        result = apply_action(state, action)
        assert result.success, f"{action} rejected: {result.error_code} {result.error_message}"
        state = result.state
    return result


@pytest.fixture
def coup_ready(make_state):
    return make_state(
        {"p1": [Card.DUKE, Card.CAPTAIN], "p2": [Card.CONTESSA, Card.ASSASSIN], "p3": [Card.AMBASSADOR, Card.CAPTAIN]},
        coins={"p1": 7},
    )


def test_coup_asks_target_which_card(coup_ready):
    result = play(coup_ready, Coup(player_id="p1", target_id="p2"))
    state = result.state

    assert state.pending_card_loss.player_id == "p2"
    assert state.pending_card_loss.reason == "coup"
    note = result.notifications[0]
    assert note.event == NOTIFY_CHOOSE_CARD_TO_LOSE
    assert note.player_id == "p2"
    assert note.data["cards"] == ["Contessa", "Assassin"]
    # The turn waits for the choice
    assert state.current_turn_player_id == "p1"


def test_pending_card_loss_blocks_other_actions(coup_ready):
    state = play(coup_ready, Coup(player_id="p1", target_id="p2")).state

    assert apply_action(state, Income(player_id="p1")).error_code == EFFECT_PENDING
    assert apply_action(state, LoseCard(player_id="p3", card=Card.CAPTAIN)).error_code == INVALID_ACTION
    # Must be a card the player actually holds
    assert apply_action(state, LoseCard(player_id="p2", card=Card.DUKE)).error_code == INVALID_ACTION


def test_lose_card_completes_loss(coup_ready):
    state = play(coup_ready, Coup(player_id="p1", target_id="p2")).state
    state = play(state, LoseCard(player_id="p2", card=Card.CONTESSA)).state

    bob = state.get_player("p2")
    assert bob.hidden == [Card.ASSASSIN]
    assert bob.revealed == [Card.CONTESSA]
    assert state.pending_card_loss is None
    assert state.current_turn_player_id == "p2"
    assert validate_deck_integrity(state)


def test_last_player_standing_wins(make_state):
    state = make_state(
        {"p1": [Card.DUKE, Card.CAPTAIN], "p2": [Card.CONTESSA]},
        coins={"p1": 7},
    )
    result = play(state, Coup(player_id="p1", target_id="p2"))
    state = result.state

    assert state.winner_id == "p1"
    assert not state.get_player("p2").alive
    events = [n.event for n in result.notifications]
    assert NOTIFY_PLAYER_ELIMINATED in events
    assert NOTIFY_GAME_OVER in events
    assert state.pending_action is None
    assert state.pending_card_loss is None

    rejected = apply_action(state, Income(player_id="p1"))
    assert rejected.error_code == TERMINAL_STATE


def test_bluff_on_last_card_ends_game(make_state):
    state = make_state({"p1": [Card.CAPTAIN], "p2": [Card.DUKE, Card.CONTESSA]})
    result = play(state, Exchange(player_id="p1"), Challenge(player_id="p2"))
    assert result.state.winner_id == "p2"
    assert result.state.pending_action is None


def test_exchange_offers_drawn_cards(make_state):
    state = make_state(
        {"p1": [Card.AMBASSADOR, Card.DUKE], "p2": [Card.CONTESSA, Card.ASSASSIN]},
        deck_top=[Card.DUKE, Card.CONTESSA],
    )
    result = play(state, Exchange(player_id="p1"), Resolve(player_id="p2"))
    state = result.state

    exchange = state.pending_exchange
    assert exchange.player_id == "p1"
    assert exchange.keep == 2
    assert sorted(exchange.cards) == sorted([Card.AMBASSADOR, Card.DUKE, Card.DUKE, Card.CONTESSA])
    assert len(state.get_player("p1").hidden) == 4
    assert validate_deck_integrity(state)

    note = result.notifications[-1]
    assert note.event == NOTIFY_CHOOSE_EXCHANGE_CARDS
    assert note.player_id == "p1"
    assert note.data["cards_to_keep"] == 2
    assert state.current_turn_player_id == "p1"


def test_exchange_selection_is_a_multiset(make_state):
    """Keeping two Dukes needs two Dukes in the pool; one Contessa can't be kept twice."""
    state = make_state(
        {"p1": [Card.AMBASSADOR, Card.DUKE], "p2": [Card.CONTESSA, Card.ASSASSIN]},
        deck_top=[Card.DUKE, Card.CONTESSA],
    )
    state = play(state, Exchange(player_id="p1"), Resolve(player_id="p2")).state

    twice = apply_action(state, ExchangeCards(player_id="p1", cards=(Card.CONTESSA, Card.CONTESSA)))
    assert twice.error_code == INVALID_ACTION
    too_few = apply_action(state, ExchangeCards(player_id="p1", cards=(Card.DUKE,)))
    assert too_few.error_code == INVALID_ACTION
    not_offered = apply_action(state, ExchangeCards(player_id="p1", cards=(Card.CAPTAIN, Card.DUKE)))
    assert not_offered.error_code == INVALID_ACTION
    other_player = apply_action(state, ExchangeCards(player_id="p2", cards=(Card.DUKE, Card.DUKE)))
    assert other_player.error_code == INVALID_ACTION

    state = play(state, ExchangeCards(player_id="p1", cards=(Card.DUKE, Card.DUKE))).state
    assert state.get_player("p1").hidden == [Card.DUKE, Card.DUKE]
    assert state.pending_exchange is None
    assert state.current_turn_player_id == "p2"
    assert validate_deck_integrity(state)


def test_auto_influence_loss_reveals_latest_card(make_state):
    from coup_engine.rules import create_rules

    state = make_state(
        {"p1": [Card.DUKE, Card.CAPTAIN], "p2": [Card.CONTESSA, Card.ASSASSIN]},
        coins={"p1": 7},
        rules=create_rules(auto_influence_loss=True),
    )
    result = play(state, Coup(player_id="p1", target_id="p2"))
    assert result.state.pending_card_loss is None
    assert result.state.get_player("p2").revealed == [Card.ASSASSIN]
    assert not [n for n in result.notifications if n.event == NOTIFY_CHOOSE_CARD_TO_LOSE]
