"""Player seat state during a round."""

from dataclasses import dataclass, field

from core.hand import Hand


@dataclass
class Player:
    """A seated player: one hand normally, two after a split."""

    player_id: int
    hands: list[Hand] = field(default_factory=lambda: [Hand()])
    current_hand_index: int = 0

    @property
    def current_hand(self) -> Hand:
        """Get the current active hand."""
        return self.hands[self.current_hand_index]

    @property
    def has_split(self) -> bool:
        """Check if the player has already split this round."""
        return len(self.hands) > 1

    @property
    def has_next_hand(self) -> bool:
        """Check if a later hand is still waiting to be played."""
        return self.current_hand_index < len(self.hands) - 1

    def reset_hands(self, stake: int) -> Hand:
        """Reset to a single empty hand carrying the given stake."""
        self.hands = [Hand(stake=stake)]
        self.current_hand_index = 0
        return self.hands[0]

    def split_hand(self) -> Hand:
        """
        Move the second card of the active hand into a new hand.

        The new hand carries the same stake and is appended after the
        active hand.
        """
        hand = self.current_hand
        new_hand = Hand(cards=[hand.cards.pop()], stake=hand.stake, is_split_hand=True)
        hand.is_split_hand = True
        self.hands.append(new_hand)
        return new_hand
