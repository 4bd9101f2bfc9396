"""Immutable views of table state for the presentation layer."""

from dataclasses import dataclass

from core.cards import Card
from core.hand import Hand, hand_value
from core.game.outcome import HandResult
from core.game.player import Player
from core.game.state import RoundPhase


@dataclass(frozen=True)
class HandView:
    """Snapshot of one hand."""

    cards: tuple[Card, ...]
    value: int
    stake: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    is_stood: bool
    is_doubled: bool
    is_split_hand: bool

    @classmethod
    def from_hand(cls, hand: Hand) -> "HandView":
        return cls(
            cards=tuple(hand.cards),
            value=hand.value,
            stake=hand.stake,
            is_soft=hand.is_soft,
            is_blackjack=hand.is_blackjack,
            is_busted=hand.is_busted,
            is_stood=hand.is_stood,
            is_doubled=hand.is_doubled,
            is_split_hand=hand.is_split_hand,
        )


@dataclass(frozen=True)
class PlayerView:
    """Snapshot of one seat."""

    player_id: int
    hands: tuple[HandView, ...]
    current_hand_index: int
    is_active: bool


@dataclass(frozen=True)
class DealerView:
    """
    Snapshot of the dealer hand.

    All cards and the full value are always present; ``hole_card_hidden``
    tells the renderer to show only the first card and ``upcard_value``.
    """

    cards: tuple[Card, ...]
    value: int
    upcard_value: int
    hole_card_hidden: bool
    is_busted: bool


@dataclass(frozen=True)
class TableSnapshot:
    """Everything a renderer needs after a transition."""

    phase: RoundPhase
    players: tuple[PlayerView, ...]
    dealer: DealerView
    current_player_id: int | None
    results: tuple[HandResult, ...]
    message: str
    cards_remaining: int


def player_view(player: Player, is_active: bool) -> PlayerView:
    """Build a PlayerView."""
    return PlayerView(
        player_id=player.player_id,
        hands=tuple(HandView.from_hand(h) for h in player.hands),
        current_hand_index=player.current_hand_index,
        is_active=is_active,
    )


def dealer_view(hand: Hand, hole_card_hidden: bool) -> DealerView:
    """Build a DealerView."""
    return DealerView(
        cards=tuple(hand.cards),
        value=hand.value,
        upcard_value=hand_value(hand.cards[:1]),
        hole_card_hidden=hole_card_hidden,
        is_busted=hand.is_busted,
    )
