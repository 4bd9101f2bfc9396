"""Round phase and player action enumerations."""

from enum import Enum, auto


class RoundPhase(Enum):
    """
    Round state machine phases.

    Flow: WAITING → DEALING → PLAYER_TURNS → DEALER_TURN → RESOLVED
    DEALING → RESOLVED when the pre-turn blackjack check settles the round.
    Any phase → ABORTED when the deck runs out.
    """

    # Table has never dealt a round
    WAITING = auto()

    # Initial two cards being dealt
    DEALING = auto()

    # Players act in join order
    PLAYER_TURNS = auto()

    # Dealer reveals and draws to 17
    DEALER_TURN = auto()

    # Outcomes are known
    RESOLVED = auto()

    # Deck exhausted mid-round
    ABORTED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def is_round_over(self) -> bool:
        """Check if no round is currently in progress."""
        return self in (RoundPhase.WAITING, RoundPhase.RESOLVED, RoundPhase.ABORTED)


# Valid phase transitions within one round
VALID_TRANSITIONS: dict[RoundPhase, list[RoundPhase]] = {
    RoundPhase.WAITING: [RoundPhase.DEALING],
    RoundPhase.DEALING: [RoundPhase.PLAYER_TURNS, RoundPhase.RESOLVED, RoundPhase.ABORTED],
    RoundPhase.PLAYER_TURNS: [RoundPhase.DEALER_TURN, RoundPhase.ABORTED],
    RoundPhase.DEALER_TURN: [RoundPhase.RESOLVED, RoundPhase.ABORTED],
    RoundPhase.RESOLVED: [RoundPhase.DEALING],
    RoundPhase.ABORTED: [RoundPhase.DEALING],
}


def is_valid_transition(from_phase: RoundPhase, to_phase: RoundPhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, [])


class Action(Enum):
    """Possible player actions."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"

    def __str__(self) -> str:
        return self.value
