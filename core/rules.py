"""Table rule configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TableRules:
    """
    Blackjack table rules.

    One 52-card deck is reshuffled every round; these are the knobs left.
    """

    # Seats at the table
    max_players: int = 7

    # Stake placed on every new hand
    default_stake: int = 10

    # Dealer stands on all totals at or above this value (S17)
    dealer_stands_on: int = 17

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if not 1 <= self.max_players <= 7:
            raise ValueError("max_players must be between 1 and 7")
        if self.default_stake < 1:
            raise ValueError("default_stake must be at least 1")
        if not 2 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 2 and 21")
