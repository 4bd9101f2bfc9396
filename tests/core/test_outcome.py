"""Tests for outcome resolution and the dealer policy."""

import pytest

from core.cards import Card
from core.game.dealer import DealerPolicy
from core.game.outcome import (
    HandResult,
    Outcome,
    evaluate_hands,
    resolve_round,
    settle_all,
    summarize,
)
from core.game.player import Player
from core.game.state import RoundPhase, is_valid_transition
from helpers import make_hand


class TestEvaluateHands:
    """Tests for comparing one hand against the dealer."""

    @pytest.mark.parametrize(
        "player,dealer,expected",
        [
            (["KS", "5H", "9C"], ["KH", "6D", "8C"], Outcome.LOSS),  # both bust
            (["10S", "8H"], ["KH", "6D", "8C"], Outcome.WIN),  # dealer busts
            (["10S", "9H"], ["10H", "8D"], Outcome.WIN),
            (["10S", "7H"], ["9H", "8D"], Outcome.PUSH),
            (["10S", "6H"], ["9H", "8D"], Outcome.LOSS),
            (["AS", "KH"], ["7H", "7D", "7C"], Outcome.PUSH),  # natural gets no bonus
        ],
    )
    def test_comparison(self, player, dealer, expected):
        """Test the comparison table."""
        assert evaluate_hands(make_hand(*player), make_hand(*dealer)) == expected


class TestResolveRound:
    """Tests for resolving a whole table."""

    def test_results_in_seat_then_hand_order(self):
        """Test result ordering and stake bookkeeping."""
        split_player = Player(
            player_id=1,
            hands=[make_hand("8S", "10H"), make_hand("8H", "KC", "5D")],
        )
        split_player.hands[0].stake = 10
        split_player.hands[1].stake = 20
        other = Player(player_id=2, hands=[make_hand("10S", "7H")])
        other.hands[0].stake = 10

        results = resolve_round([split_player, other], make_hand("10C", "7D"))

        assert [(r.player_id, r.hand_index, r.outcome) for r in results] == [
            (1, 0, Outcome.WIN),
            (1, 1, Outcome.LOSS),
            (2, 0, Outcome.PUSH),
        ]
        assert [r.net for r in results] == [10, -20, 0]
        assert results[1].busted

    def test_settle_all_uses_first_hand(self):
        """Test the pre-turn sweep helper."""
        players = [Player(player_id=1, hands=[make_hand("AS", "KH")])]
        results = settle_all(players, Outcome.LOSS)
        assert results == [
            HandResult(player_id=1, hand_index=0, value=21, stake=0, outcome=Outcome.LOSS)
        ]


class TestSummary:
    """Tests for the end-of-round message."""

    def test_summary_message(self):
        """Test the wording of every outcome."""
        results = [
            HandResult(1, 0, 20, 10, Outcome.WIN),
            HandResult(2, 0, 24, 10, Outcome.LOSS, busted=True),
            HandResult(3, 0, 19, 10, Outcome.PUSH),
            HandResult(3, 1, 15, 10, Outcome.LOSS),
        ]
        message = summarize(make_hand("10C", "9D"), results)
        assert message == (
            "Dealer's hand: 19. Player 1 Hand 1 wins! Player 2 Hand 1 busts. "
            "Player 3 Hand 1 ties. Player 3 Hand 2 loses."
        )

    def test_summary_dealer_bust(self):
        """Test the dealer bust notice."""
        message = summarize(make_hand("10C", "6D", "9H"), [])
        assert message == "Dealer's hand: 25. Dealer busts!"


class TestDealerPolicy:
    """Tests for dealer drawing."""

    def test_never_draws_at_17_or_more(self):
        """Test that a standing total draws nothing."""
        policy = DealerPolicy()
        hand = make_hand("10C", "7D")
        assert policy.play(hand, lambda: pytest.fail("dealer drew on 17")) == []

    def test_stands_on_soft_17(self):
        """Dealer stands on all 17s."""
        assert not DealerPolicy().should_hit(make_hand("AS", "6D"))

    def test_draws_until_17(self):
        """Test drawing through several cards."""
        cards = iter(Card.from_string(c) for c in ["2H", "3S", "KD", "5C"])
        hand = make_hand("2C", "3D")
        seen = []

        drawn = DealerPolicy().play(hand, lambda: next(cards), on_card=seen.append)

        assert [str(c) for c in drawn] == ["2♥", "3♠", "K♦"]
        assert seen == drawn
        assert hand.value == 20

    def test_stops_on_bust(self):
        """A bust also stops the dealer."""
        cards = iter(Card.from_string(c) for c in ["KD", "5C"])
        hand = make_hand("10C", "6D")
        DealerPolicy().play(hand, lambda: next(cards))
        assert hand.value == 26

    def test_custom_threshold(self):
        """Test a non-default stand threshold."""
        assert DealerPolicy(stands_on=18).should_hit(make_hand("10C", "7D"))


class TestPhaseTransitions:
    """Tests for the phase table."""

    def test_forward_only(self):
        """Phases never move backwards within a round."""
        assert is_valid_transition(RoundPhase.DEALING, RoundPhase.PLAYER_TURNS)
        assert is_valid_transition(RoundPhase.DEALING, RoundPhase.RESOLVED)
        assert is_valid_transition(RoundPhase.DEALER_TURN, RoundPhase.RESOLVED)
        assert not is_valid_transition(RoundPhase.DEALER_TURN, RoundPhase.PLAYER_TURNS)
        assert not is_valid_transition(RoundPhase.PLAYER_TURNS, RoundPhase.DEALING)

    def test_new_round_from_finished_phases(self):
        """Test that only finished rounds can be redealt."""
        for phase in RoundPhase:
            assert is_valid_transition(phase, RoundPhase.DEALING) == phase.is_round_over

    def test_str(self):
        """Test display names."""
        assert str(RoundPhase.PLAYER_TURNS) == "Player Turns"
