"""
Shared fixtures for the Coup engine tests.
"""

from collections import Counter

import pytest

from coup_engine.deck import Deck, create_deck
from coup_engine.models import Card, GameState, Player
from coup_engine.rules import default_rules

NAMES = {"p1": "Alice", "p2": "Bob", "p3": "Charlie", "p4": "Dana"}


def build_state(hands, coins=None, rules=None, turn=None, deck_top=(), seed=7):
    """
    Build a game state with rigged hands.

    The deck holds exactly the cards not dealt, so card conservation holds.
    ``deck_top`` lists cards in the order they will be drawn.
    """
    rules = rules or default_rules
    coins = coins or {}
    pool = Counter(create_deck(rules.copies_per_card))

    players = []
    for seat, (player_id, cards) in enumerate(hands.items()):
        pool.subtract(cards)
        players.append(Player(
            id=player_id,
            name=NAMES.get(player_id, player_id),
            seat=seat,
            coins=coins.get(player_id, rules.starting_coins),
            hidden=list(cards),
        ))
    assert all(count >= 0 for count in pool.values()), "hands use more copies than the deck holds"

    deck = Deck(cards=list(pool.elements()), seed=seed)
    deck.shuffle()
    for card in reversed(list(deck_top)):
        deck.cards.remove(card)
        deck.cards.append(card)

    return GameState(
        room_id="test-room",
        players=players,
        deck=deck,
        current_turn_player_id=turn or players[0].id,
        rules=rules,
    )


@pytest.fixture
def make_state():
    return build_state


@pytest.fixture
def three_players():
    """Alice holds Duke+Captain, Bob Contessa+Assassin, Charlie Ambassador+Captain."""
    return build_state({
        "p1": [Card.DUKE, Card.CAPTAIN],
        "p2": [Card.CONTESSA, Card.ASSASSIN],
        "p3": [Card.AMBASSADOR, Card.CAPTAIN],
    })


@pytest.fixture
def roster():
    return [
        {"id": "p1", "name": "Alice"},
        {"id": "p2", "name": "Bob"},
        {"id": "p3", "name": "Charlie"},
    ]
