"""Outcome resolution against the dealer hand."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from core.hand import Hand
from core.game.player import Player

DEALER_BLACKJACK_MESSAGE = "Dealer has Blackjack! All players lose!"
ALL_BLACKJACK_MESSAGE = "All players have Blackjack! It's a tie!"


class Outcome(Enum):
    """Result of one player hand."""

    WIN = "win"
    LOSS = "loss"
    PUSH = "push"

    @property
    def multiplier(self) -> int:
        """Stake multiplier applied to the hand's stake."""
        return {Outcome.WIN: 1, Outcome.LOSS: -1, Outcome.PUSH: 0}[self]


@dataclass(frozen=True)
class HandResult:
    """Resolved outcome for one player hand."""

    player_id: int
    hand_index: int
    value: int
    stake: int
    outcome: Outcome
    busted: bool = False

    @property
    def net(self) -> int:
        """Net stake change for the hand."""
        return self.stake * self.outcome.multiplier

    def describe(self) -> str:
        """Human-readable line, e.g. 'Player 1 Hand 1 wins! '."""
        label = f"Player {self.player_id} Hand {self.hand_index + 1}"
        if self.busted:
            return f"{label} busts. "
        return {
            Outcome.WIN: f"{label} wins! ",
            Outcome.PUSH: f"{label} ties. ",
            Outcome.LOSS: f"{label} loses. ",
        }[self.outcome]


def evaluate_hands(player_hand: Hand, dealer_hand: Hand) -> Outcome:
    """
    Compare a player hand with the final dealer hand.

    A natural is compared by value like any other hand; there is no
    early or bonus payout.
    """
    # Player busts always loses
    if player_hand.is_busted:
        return Outcome.LOSS

    # Dealer busts, player wins
    if dealer_hand.is_busted:
        return Outcome.WIN

    player_value = player_hand.value
    dealer_value = dealer_hand.value
    if player_value > dealer_value:
        return Outcome.WIN
    if player_value == dealer_value:
        return Outcome.PUSH
    return Outcome.LOSS


def resolve_round(players: Iterable[Player], dealer_hand: Hand) -> list[HandResult]:
    """Resolve every hand of every player, in seat then hand order."""
    return [
        HandResult(
            player_id=player.player_id,
            hand_index=index,
            value=hand.value,
            stake=hand.stake,
            outcome=evaluate_hands(hand, dealer_hand),
            busted=hand.is_busted,
        )
        for player in players
        for index, hand in enumerate(player.hands)
    ]


def settle_all(players: Iterable[Player], outcome: Outcome) -> list[HandResult]:
    """Give every player's first hand the same outcome (pre-turn blackjack check)."""
    return [
        HandResult(
            player_id=player.player_id,
            hand_index=0,
            value=player.hands[0].value,
            stake=player.hands[0].stake,
            outcome=outcome,
        )
        for player in players
    ]


def summarize(dealer_hand: Hand, results: Iterable[HandResult]) -> str:
    """Build the end-of-round message shown to the table."""
    dealer_value = dealer_hand.value
    message = f"Dealer's hand: {dealer_value}. "
    if dealer_hand.is_busted:
        message += "Dealer busts! "
    for result in results:
        message += result.describe()
    return message.strip()
