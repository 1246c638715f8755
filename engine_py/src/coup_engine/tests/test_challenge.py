"""
Tests for challenge resolution against actions and blocks.
"""

from collections import Counter

from coup_engine.actions import (
    Assassinate, Block, Challenge, ForeignAid, LoseCard, Resolve, Tax,
)
from coup_engine.constants import NOTIFY_CHALLENGE_RESULT
from coup_engine.deck import validate_deck_integrity
from coup_engine.engine import apply_action
from coup_engine.models import Card
from coup_engine.validate import is_valid_action


def play(state, *actions):
    result = None
    for action in actions:
        result = apply_action(state, action)
        assert result.success, f"{action} rejected: {result.error_code} {result.error_message}"
        state = result.state
    return result


def test_vindicated_claim_stays_open(three_players):
    """Alice really has the Duke: Bob loses a card and the tax waits for Charlie."""
    result = play(three_players, Tax(player_id="p1"), Challenge(player_id="p2"))
    state = result.state

    challenge_note = next(n for n in result.notifications if n.event == NOTIFY_CHALLENGE_RESULT)
    assert challenge_note.data["challenge_succeeded"] is False
    assert challenge_note.data["accused_id"] == "p1"

    pending = state.pending_action
    assert pending.claim_verified
    assert pending.responded == ["p2"]
    assert state.pending_card_loss.player_id == "p2"
    assert len(state.get_player("p1").hidden) == 2
    assert validate_deck_integrity(state)

    state = play(state, LoseCard(player_id="p2", card=Card.ASSASSIN)).state
    assert state.pending_action is not None
    assert not is_valid_action(state, Challenge(player_id="p3"))

    state = play(state, Resolve(player_id="p3")).state
    assert state.pending_action is None
    assert state.get_player("p1").coins == 5
    assert state.current_turn_player_id == "p2"


def test_vindicated_claim_returns_card_to_deck(make_state):
    """The revealed role is shuffled back and replaced by a draw."""
    state = make_state({"p1": [Card.DUKE, Card.CAPTAIN], "p2": [Card.CONTESSA, Card.ASSASSIN]})
    before = Counter(state.deck.cards)
    result = play(state, Tax(player_id="p1"), Challenge(player_id="p2"))
    after = result.state

    assert sum(Counter(after.deck.cards).values()) == sum(before.values())
    assert Counter(after.get_player("p1").hidden)[Card.CAPTAIN] >= 1
    assert validate_deck_integrity(after)


def test_last_challenger_settles_verified_claim(make_state):
    """In a two player game the challenger is the only responder."""
    state = make_state({"p1": [Card.DUKE, Card.CAPTAIN], "p2": [Card.CONTESSA, Card.ASSASSIN]})
    state = play(state, Tax(player_id="p1"), Challenge(player_id="p2")).state
    assert state.pending_action is not None

    state = play(state, LoseCard(player_id="p2", card=Card.CONTESSA)).state
    assert state.pending_action is None
    assert state.get_player("p1").coins == 5
    assert state.current_turn_player_id == "p2"


def test_disproven_block_resumes_action(three_players):
    """Bob claims Duke to block foreign aid without holding it."""
    result = play(
        three_players,
        ForeignAid(player_id="p1"),
        Block(player_id="p2", card=Card.DUKE),
        Challenge(player_id="p1"),
    )
    state = result.state
    pending = state.pending_action
    assert pending.blocker_id is None
    assert pending.blocking_card is None
    assert pending.block_disproven
    assert pending.responded == []
    assert state.pending_card_loss.player_id == "p2"

    state = play(state, LoseCard(player_id="p2", card=Card.CONTESSA)).state
    # No second block after one was disproven
    assert not is_valid_action(state, Block(player_id="p3", card=Card.DUKE))

    state = play(state, Resolve(player_id="p2"), Resolve(player_id="p3")).state
    assert state.pending_action is None
    assert state.get_player("p1").coins == 4
    assert state.get_player("p2").revealed == [Card.CONTESSA]


def test_vindicated_block_cancels_action(make_state):
    state = make_state({
        "p1": [Card.CAPTAIN, Card.CONTESSA],
        "p2": [Card.DUKE, Card.ASSASSIN],
        "p3": [Card.AMBASSADOR, Card.CAPTAIN],
    })
    result = play(
        state,
        ForeignAid(player_id="p1"),
        Block(player_id="p2", card=Card.DUKE),
        Challenge(player_id="p3"),
    )
    state = result.state
    assert state.pending_action is None
    assert state.pending_card_loss.player_id == "p3"

    state = play(state, LoseCard(player_id="p3", card=Card.CAPTAIN)).state
    assert state.get_player("p1").coins == 2
    assert state.current_turn_player_id == "p2"


def test_assassination_target_dies_challenging(make_state):
    """The target loses their last card on a failed challenge; the kill is a no-op."""
    state = make_state(
        {"p1": [Card.ASSASSIN, Card.DUKE], "p2": [Card.CONTESSA], "p3": [Card.CAPTAIN, Card.AMBASSADOR]},
        coins={"p1": 3},
    )
    state = play(state, Assassinate(player_id="p1", target_id="p2"), Challenge(player_id="p2")).state

    assert not state.get_player("p2").alive
    assert state.pending_action.claim_verified

    state = play(state, Resolve(player_id="p3")).state
    assert state.pending_action is None
    assert state.get_player("p2").revealed == [Card.CONTESSA]
    assert state.current_turn_player_id == "p3"
