"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Deck, Rank, Suit
from core.exceptions import BlackjackError, DeckExhausted, IllegalAction, RosterFull
from core.hand import Hand, hand_value
from core.rules import TableRules

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "Hand",
    "hand_value",
    "TableRules",
    "BlackjackError",
    "DeckExhausted",
    "IllegalAction",
    "RosterFull",
]
