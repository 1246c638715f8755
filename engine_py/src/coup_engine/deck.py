"""
Court deck creation, shuffling and drawing.
"""

import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .constants import ALL_CARDS
from .errors import DeckExhausted
from .models import Card, GameState


def create_deck(copies_per_card: int = 3) -> List[Card]:
    """Create the full, unshuffled court deck."""
    deck = []
    for card in ALL_CARDS:
        deck.extend([card] * copies_per_card)
    return deck


@dataclass
class Deck:
    """
    Ordered pile of face-down cards. The top of the deck is the end of ``cards``.

    Shuffling uses ``random.Random.shuffle`` (Fisher-Yates). Pass a seed for a
    deterministic order.
    """
    cards: List[Card] = field(default_factory=list)
    seed: Optional[int] = None
    _rng: random.Random = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._rng is None:
            self._rng = random.Random(self.seed)

    @classmethod
    def full(cls, copies_per_card: int = 3, seed: Optional[int] = None) -> "Deck":
        deck = cls(cards=create_deck(copies_per_card), seed=seed)
        deck.shuffle()
        return deck

    def __len__(self) -> int:
        return len(self.cards)

    def shuffle(self):
        self._rng.shuffle(self.cards)

    def draw(self, n: int = 1) -> List[Card]:
        """
        Remove and return the top ``n`` cards.

        Raises:
            DeckExhausted: If fewer than ``n`` cards remain.
        """
        if n < 0:
            raise ValueError("Cannot draw a negative number of cards")
        if n > len(self.cards):
            raise DeckExhausted(f"Cannot draw {n} cards, only {len(self.cards)} left")
        drawn = [self.cards.pop() for _ in range(n)]
        return drawn

    def return_cards(self, cards: Iterable[Card]):
        """Put cards back into the deck and reshuffle."""
        self.cards.extend(cards)
        self.shuffle()


def count_cards_in_play(state: GameState) -> Counter:
    """Multiset of every card in the deck and in every player's hand or face up."""
    counts = Counter(state.deck.cards)
    for player in state.players:
        counts.update(player.hidden)
        counts.update(player.revealed)
    return counts


def validate_deck_integrity(state: GameState) -> bool:
    """
    Validate that all cards are accounted for: no card lost, none duplicated.

    Args:
        state: Game state to validate

    Returns:
        True if the cards in play equal the full deck
    """
    expected = Counter(create_deck(state.rules.copies_per_card))
    return count_cards_in_play(state) == expected
