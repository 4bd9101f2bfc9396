"""Hand evaluation for blackjack."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from core.cards import Card

logger = logging.getLogger(__name__)

BLACKJACK = 21


def hand_value(cards: Iterable[Card]) -> int:
    """
    Calculate the best blackjack value of a sequence of cards.

    Aces start at 11 and are softened to 1 one at a time while the total
    is over 21. Returns the highest value that doesn't bust, or the lowest
    bust value. An empty hand is worth 0.

    Raises:
        TypeError: If an entry is not a Card.
    """
    total = 0
    aces = 0

    for card in cards:
        if not isinstance(card, Card):
            logger.error("Invalid card in hand: %r", card)
            raise TypeError(f"Invalid card: {card!r}")
        if card.is_ace:
            aces += 1
        total += card.value

    # Reduce aces from 11 to 1 as needed
    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total


@dataclass
class Hand:
    """A blackjack hand with value calculation."""

    cards: list[Card] = field(default_factory=list)
    stake: int = 0
    is_doubled: bool = False
    is_stood: bool = False
    is_split_hand: bool = False

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self.cards.clear()
        self.is_doubled = False
        self.is_stood = False
        self.is_split_hand = False

    @property
    def value(self) -> int:
        """Best hand value, see hand_value()."""
        return hand_value(self.cards)

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft (has an ace counted as 11).

        A hand is soft if it contains an ace that can be counted as 11
        without busting.
        """
        if not any(card.is_ace for card in self.cards):
            return False

        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= BLACKJACK

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is exactly two cards worth 21."""
        return len(self.cards) == 2 and self.value == BLACKJACK

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > BLACKJACK

    @property
    def is_finished(self) -> bool:
        """A hand is finished once it has stood or busted."""
        return self.is_stood or self.is_busted

    @property
    def is_pair(self) -> bool:
        """Check if the hand is a pair (two cards of the same rank)."""
        return (
            len(self.cards) == 2
            and self.cards[0].rank == self.cards[1].rank
        )

    @property
    def can_double(self) -> bool:
        """Check if the hand can be doubled down."""
        return len(self.cards) == 2 and not self.is_doubled and not self.is_finished

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"
