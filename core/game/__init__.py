"""Table engine and round state management."""

from core.game.events import GameEvent, EventType
from core.game.state import Action, RoundPhase
from core.game.outcome import HandResult, Outcome
from core.game.snapshot import TableSnapshot
from core.game.engine import BlackjackTable

__all__ = [
    "GameEvent",
    "EventType",
    "Action",
    "RoundPhase",
    "HandResult",
    "Outcome",
    "TableSnapshot",
    "BlackjackTable",
]
