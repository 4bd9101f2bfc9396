"""Dealer drawing policy."""

from dataclasses import dataclass
from typing import Callable

from core.cards import Card
from core.hand import Hand


@dataclass(frozen=True)
class DealerPolicy:
    """Dealer draws below the threshold and stands on every total at or above it."""

    stands_on: int = 17

    def should_hit(self, hand: Hand) -> bool:
        """Determine if the dealer should draw another card."""
        return hand.value < self.stands_on

    def play(
        self,
        hand: Hand,
        draw: Callable[[], Card],
        on_card: Callable[[Card], None] | None = None,
    ) -> list[Card]:
        """
        Draw into the dealer hand until the policy says stand.

        Args:
            hand: Dealer hand, modified in place
            draw: Card source
            on_card: Called after each card is added

        Returns:
            The cards drawn, in order
        """
        drawn: list[Card] = []
        while self.should_hit(hand):
            card = draw()
            hand.add_card(card)
            drawn.append(card)
            if on_card is not None:
                on_card(card)
        return drawn
