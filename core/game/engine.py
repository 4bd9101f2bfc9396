"""Multi-player blackjack table engine with state machine."""

import logging
from random import Random
from typing import Callable

from transitions import Machine

from core.cards import Card, Deck
from core.exceptions import DeckExhausted, IllegalAction, RosterFull
from core.hand import Hand
from core.rules import TableRules
from core.game.dealer import DealerPolicy
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.outcome import (
    ALL_BLACKJACK_MESSAGE,
    DEALER_BLACKJACK_MESSAGE,
    HandResult,
    Outcome,
    resolve_round,
    settle_all,
    summarize,
)
from core.game.player import Player
from core.game.snapshot import TableSnapshot, dealer_view, player_view
from core.game.state import Action, RoundPhase, is_valid_transition

logger = logging.getLogger(__name__)

ABORTED_MESSAGE = "Round aborted: the deck is exhausted."

_OUTCOME_EVENTS = {
    Outcome.WIN: EventType.PLAYER_WINS,
    Outcome.LOSS: EventType.PLAYER_LOSES,
    Outcome.PUSH: EventType.PUSH,
}


class BlackjackTable:
    """
    Blackjack table engine using a state machine.

    Owns one deck, up to seven players and the dealer for a sequence of
    rounds. Completely UI-agnostic: callers drive it through
    ``start_round``, ``add_player`` and ``act``, and observe it through
    ``snapshot()`` and events.
    """

    # State machine states
    STATES = [p.name.lower() for p in RoundPhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "deal", "source": ["waiting", "resolved", "aborted"], "dest": "dealing"},
        {"trigger": "begin_turns", "source": "dealing", "dest": "player_turns"},
        # Pre-turn blackjack check settles the round
        {"trigger": "settle_naturals", "source": "dealing", "dest": "resolved"},
        {"trigger": "dealer_up", "source": "player_turns", "dest": "dealer_turn"},
        {"trigger": "finish", "source": "dealer_turn", "dest": "resolved"},
        {
            "trigger": "abort",
            "source": ["dealing", "player_turns", "dealer_turn"],
            "dest": "aborted",
        },
    ]

    def __init__(
        self,
        rules: TableRules | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize an empty table.

        Args:
            rules: Table rules (uses defaults if not provided)
            rng: Random number generator for reproducible shuffles
        """
        self.rules = rules or TableRules()
        self.deck = Deck(rng=rng)
        self.policy = DealerPolicy(stands_on=self.rules.dealer_stands_on)

        self.players: list[Player] = []
        self.dealer_hand = Hand()
        self.hole_card_hidden = True
        self.turn_index = 0
        self.results: list[HandResult] = []
        self.message = ""
        self.last_rejection: str | None = None
        self.events = EventEmitter()

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="waiting",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get current round phase as enum."""
        return RoundPhase[self._machine_state.upper()]  # type: ignore

    @property
    def current_player(self) -> Player | None:
        """The player whose hand is active, if any."""
        if self.phase != RoundPhase.PLAYER_TURNS:
            return None
        if 0 <= self.turn_index < len(self.players):
            return self.players[self.turn_index]
        return None

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    # Seating

    def add_player(self) -> int:
        """
        Seat a new player at the end of the turn order.

        A player joining while turns are in progress is dealt in
        immediately and plays after everyone already seated.

        Returns:
            The new player's id (1-based join order)

        Raises:
            RosterFull: If every seat is taken
        """
        if len(self.players) >= self.rules.max_players:
            logger.info("Table full, rejecting player %d", len(self.players) + 1)
            self.events.emit_new(EventType.ROSTER_FULL, max_players=self.rules.max_players)
            raise RosterFull(self.rules.max_players)

        player = Player(player_id=len(self.players) + 1)
        player.reset_hands(self.rules.default_stake)

        if self.phase == RoundPhase.PLAYER_TURNS:
            self._ensure_cards(2)
            self._deal_card(player.current_hand, f"player {player.player_id}")
            self._deal_card(player.current_hand, f"player {player.player_id}")

        self.players.append(player)
        logger.info("Player %d joined during %s", player.player_id, self.phase)
        self.events.emit_new(
            EventType.PLAYER_JOINED,
            player_id=player.player_id,
            dealt_in=bool(player.current_hand.cards),
        )
        return player.player_id

    # Round flow

    def start_round(self) -> bool:
        """
        Shuffle a fresh deck and deal two cards to every player and the dealer.

        The event history is reset, so it only holds the current round.

        Returns:
            True if a round was started
        """
        if not is_valid_transition(self.phase, RoundPhase.DEALING):
            self._reject("Cannot start a new round while one is in progress")
            return False
        if not self.players:
            self._reject("Cannot start a round with no players seated")
            return False

        self.events.clear_history()
        self.deal()
        self.turn_index = 0
        self.results = []
        self.message = ""
        self.last_rejection = None
        self.hole_card_hidden = True
        self.dealer_hand = Hand()
        for player in self.players:
            player.reset_hands(self.rules.default_stake)

        self.deck.reset()
        self.deck.shuffle()
        self.events.emit_new(EventType.DECK_SHUFFLED, cards=len(self.deck))

        # Deal: two to each player in seat order, then two to the dealer
        self._ensure_cards(2 * len(self.players) + 2)
        for player in self.players:
            self._deal_card(player.current_hand, f"player {player.player_id}")
            self._deal_card(player.current_hand, f"player {player.player_id}")
        self._deal_card(self.dealer_hand, "dealer")
        self._deal_card(self.dealer_hand, "dealer", face_up=False)

        logger.info("Round started with %d players", len(self.players))
        self.events.emit_new(EventType.ROUND_STARTED, players=len(self.players))

        if self._check_for_blackjack():
            return True

        self.begin_turns()
        self._announce_turn(self.message)
        return True

    def _check_for_blackjack(self) -> bool:
        """Settle the round before any turns if the dealer or every player has 21."""
        if self.dealer_hand.is_blackjack:
            self.events.emit_new(EventType.DEALER_BLACKJACK)
            self.results = settle_all(self.players, Outcome.LOSS)
            self.settle_naturals()
            self._close_round(DEALER_BLACKJACK_MESSAGE)
            return True

        all_blackjack = True
        notices = ""
        for player in self.players:
            if player.hands[0].is_blackjack:
                notices += f"Player {player.player_id} has Blackjack! "
                self.events.emit_new(EventType.PLAYER_BLACKJACK, player_id=player.player_id)
            else:
                all_blackjack = False

        if all_blackjack:
            self.events.emit_new(EventType.ALL_PLAYERS_BLACKJACK)
            self.results = settle_all(self.players, Outcome.PUSH)
            self.settle_naturals()
            self._close_round(ALL_BLACKJACK_MESSAGE)
            return True

        self.message = notices
        return False

    # Player actions

    def act(self, player_id: int, action: Action | str) -> bool:
        """
        Apply a player action.

        Illegal actions are rejected without changing any state; the reason
        is kept in ``last_rejection`` and emitted as INVALID_ACTION.

        Returns:
            True if the action was applied

        Raises:
            DeckExhausted: If the deck cannot supply the cards the action needs
        """
        try:
            action = Action(action)
        except ValueError:
            self._reject(f"Unknown action: {action}", player_id=player_id)
            return False

        handlers = {
            Action.HIT: self._hit,
            Action.STAND: self._stand,
            Action.DOUBLE: self._double_down,
            Action.SPLIT: self._split,
        }

        try:
            player = self._check_legal(player_id, action)
        except IllegalAction as exc:
            self._reject(str(exc), player_id=player_id, action=action.value)
            return False

        self.last_rejection = None
        handlers[action](player)
        return True

    def hit(self, player_id: int) -> bool:
        """Player hits (takes another card)."""
        return self.act(player_id, Action.HIT)

    def stand(self, player_id: int) -> bool:
        """Player stands (keeps current hand)."""
        return self.act(player_id, Action.STAND)

    def double_down(self, player_id: int) -> bool:
        """Player doubles the stake, takes one card and stands."""
        return self.act(player_id, Action.DOUBLE)

    def split(self, player_id: int) -> bool:
        """Player splits a pair into two hands."""
        return self.act(player_id, Action.SPLIT)

    def _check_legal(self, player_id: int, action: Action) -> Player:
        """Return the acting player, or raise IllegalAction."""
        if self.phase != RoundPhase.PLAYER_TURNS:
            raise IllegalAction(f"Cannot {action} during {self.phase}")

        player = self.current_player
        if player is None or player.player_id != player_id:
            raise IllegalAction(f"It is not Player {player_id}'s turn")

        hand = player.current_hand
        if action == Action.DOUBLE and not hand.can_double:
            raise IllegalAction("Can only double down on a two-card hand")
        if action == Action.SPLIT:
            if player.has_split:
                raise IllegalAction("Hand has already been split")
            if not hand.is_pair:
                raise IllegalAction("Can only split two cards of the same rank")
        return player

    def _hit(self, player: Player) -> None:
        self._ensure_cards(1)
        hand = player.current_hand
        self._deal_card(hand, f"player {player.player_id}")
        self.events.emit_new(
            EventType.PLAYER_HIT,
            player_id=player.player_id,
            hand_index=player.current_hand_index,
            hand_value=hand.value,
        )

        if hand.is_busted:
            self._bust(player)

    def _stand(self, player: Player) -> None:
        hand = player.current_hand
        hand.is_stood = True
        self.events.emit_new(
            EventType.PLAYER_STAND,
            player_id=player.player_id,
            hand_index=player.current_hand_index,
            hand_value=hand.value,
        )
        self._advance(player)

    def _double_down(self, player: Player) -> None:
        self._ensure_cards(1)
        hand = player.current_hand
        hand.stake *= 2
        hand.is_doubled = True
        self._deal_card(hand, f"player {player.player_id}")
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            player_id=player.player_id,
            hand_index=player.current_hand_index,
            hand_value=hand.value,
            new_stake=hand.stake,
        )

        # One card only, then the hand is over either way
        if hand.is_busted:
            self._bust(player)
        else:
            hand.is_stood = True
            self._advance(player)

    def _split(self, player: Player) -> None:
        self._ensure_cards(2)
        hand = player.current_hand
        new_hand = player.split_hand()

        self._deal_card(hand, f"player {player.player_id}")
        self._deal_card(new_hand, f"player {player.player_id}")

        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            player_id=player.player_id,
            hand1_value=hand.value,
            hand2_value=new_hand.value,
        )

    def _bust(self, player: Player) -> None:
        """Record a bust on the active hand and move on."""
        self.events.emit_new(
            EventType.PLAYER_BUSTS,
            player_id=player.player_id,
            hand_index=player.current_hand_index,
        )
        notice = "" if player.has_next_hand else f"Player {player.player_id} busts! "
        self._advance(player, notice)

    def _advance(self, player: Player, notice: str = "") -> None:
        """Move to the player's next hand, the next player, or the dealer."""
        if player.has_next_hand:
            player.current_hand_index += 1
            self.events.emit_new(
                EventType.TURN_CHANGED,
                player_id=player.player_id,
                hand_index=player.current_hand_index,
            )
            return

        self.turn_index += 1
        if self.turn_index >= len(self.players):
            self._play_dealer()
            return

        self._announce_turn(notice)

    def _announce_turn(self, prefix: str = "") -> None:
        player = self.players[self.turn_index]
        self.message = f"{prefix}Player {player.player_id}'s turn"
        self.events.emit_new(
            EventType.TURN_CHANGED,
            player_id=player.player_id,
            hand_index=player.current_hand_index,
        )

    # Dealer and resolution

    def _play_dealer(self) -> None:
        """Reveal the hole card, draw to the policy and resolve every hand."""
        self.dealer_up()
        self.hole_card_hidden = False
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=str(self.dealer_hand.cards[1]) if len(self.dealer_hand) > 1 else None,
            hand_value=self.dealer_hand.value,
        )

        def on_card(card: Card) -> None:
            self.events.emit_new(
                EventType.DEALER_HITS,
                card=str(card),
                hand_value=self.dealer_hand.value,
            )

        try:
            self.policy.play(self.dealer_hand, self.deck.draw, on_card=on_card)
        except DeckExhausted:
            self._abort_round()
            raise

        if self.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=self.dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=self.dealer_hand.value)

        self.results = resolve_round(self.players, self.dealer_hand)
        self.finish()
        self._close_round(summarize(self.dealer_hand, self.results))

    def _close_round(self, message: str) -> None:
        """Publish results once the round is resolved."""
        self.hole_card_hidden = False
        self.message = message
        for result in self.results:
            self.events.emit_new(
                _OUTCOME_EVENTS[result.outcome],
                player_id=result.player_id,
                hand_index=result.hand_index,
                net=result.net,
            )
        logger.info("Round resolved: %s", message)
        self.events.emit_new(
            EventType.ROUND_ENDED,
            message=message,
            net=sum(r.net for r in self.results),
        )

    # Deck handling

    def _ensure_cards(self, count: int) -> None:
        """Abort the round before mutating anything if the deck is short."""
        if len(self.deck) < count:
            self._abort_round()
            raise DeckExhausted(f"Need {count} cards, {len(self.deck)} left")

    def _abort_round(self) -> None:
        logger.error("Deck exhausted during %s, aborting round", self.phase)
        if not self.phase.is_round_over:
            self.abort()
        self.message = ABORTED_MESSAGE
        self.events.emit_new(EventType.ROUND_ABORTED, cards_remaining=len(self.deck))

    def _deal_card(self, hand: Hand, owner: str, face_up: bool = True) -> Card:
        """Deal a card to a hand."""
        card = self.deck.draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card) if face_up else "??",
            hand=owner,
            hand_value=hand.value if face_up else None,
        )
        return card

    def _reject(self, message: str, **data) -> None:
        self.last_rejection = message
        logger.info("Rejected: %s", message)
        self.events.emit_new(EventType.INVALID_ACTION, message=message, **data)

    # Observation

    def is_legal(self, player_id: int, action: Action | str) -> bool:
        """Check whether an action would be accepted right now."""
        try:
            self._check_legal(player_id, Action(action))
        except (IllegalAction, ValueError):
            return False
        return True

    def can_hit(self, player_id: int) -> bool:
        """Check if hitting is allowed."""
        return self.is_legal(player_id, Action.HIT)

    def can_stand(self, player_id: int) -> bool:
        """Check if standing is allowed."""
        return self.is_legal(player_id, Action.STAND)

    def can_double(self, player_id: int) -> bool:
        """Check if doubling is allowed."""
        return self.is_legal(player_id, Action.DOUBLE)

    def can_split(self, player_id: int) -> bool:
        """Check if splitting is allowed."""
        return self.is_legal(player_id, Action.SPLIT)

    def get_player(self, player_id: int) -> Player | None:
        """Look up a seated player by id."""
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def snapshot(self) -> TableSnapshot:
        """Immutable view of the whole table."""
        current = self.current_player
        return TableSnapshot(
            phase=self.phase,
            players=tuple(
                player_view(p, is_active=p is current) for p in self.players
            ),
            dealer=dealer_view(self.dealer_hand, self.hole_card_hidden),
            current_player_id=current.player_id if current else None,
            results=tuple(self.results),
            message=self.message,
            cards_remaining=len(self.deck),
        )
