"""Engine error taxonomy."""


class BlackjackError(Exception):
    """Base class for all engine errors."""


class DeckExhausted(BlackjackError, IndexError):
    """Raised when a card is drawn from an empty deck. Fatal to the round."""


class IllegalAction(BlackjackError):
    """Raised when an action is not legal in the current table state."""


class RosterFull(BlackjackError):
    """Raised when a player tries to join a full table."""

    def __init__(self, max_players: int) -> None:
        super().__init__(f"Maximum number of players reached ({max_players})")
        self.max_players = max_players
