"""Deterministic dealing helpers shared by the test suites."""

from random import Random

from core.cards import Card
from core.hand import Hand
from core.game import BlackjackTable


class StackedRandom(Random):
    """
    Random whose shuffle puts chosen cards on top of the deck.

    ``draws`` are card strings in the order they will be dealt; the rest of
    the deck follows in its original order.
    """

    def __init__(self, draws: list[str]) -> None:
        super().__init__(0)
        self._draws = [Card.from_string(s) for s in draws]

    def shuffle(self, x) -> None:
        rest = [c for c in x if c not in self._draws]
        x[:] = rest + list(reversed(self._draws))


def stacked_table(*draws: str, players: int = 1) -> BlackjackTable:
    """
    A table with ``players`` seated whose rounds deal ``draws`` in order.

    Initial deal order is two cards per player in seat order, then the
    dealer's upcard and hole card.
    """
    table = BlackjackTable(rng=StackedRandom(list(draws)))
    for _ in range(players):
        table.add_player()
    return table


def make_hand(*cards: str) -> Hand:
    """Build a hand from card strings like 'AS', '10H'."""
    return Hand(cards=[Card.from_string(c) for c in cards])
