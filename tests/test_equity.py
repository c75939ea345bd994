"""Tests for equity calculations."""

import numpy as np
import pytest

from felt.errors import DeckExhaustedError, InvalidInputError
from felt.game.cards import Hand, parse_cards
from felt.game.equity import (
    EquityCalculator, EquityResult, calculate_equity, calculate_equity_vs_range,
    calculate_draw_odds, is_profitable_call, required_equity,
)


@pytest.fixture
def calculator(rng):
    return EquityCalculator(rng)


def assert_sums_to_100(result: EquityResult):
    assert abs(result.win + result.tie + result.lose - 100.0) <= 0.2


class TestCalculateEquity:
    def test_pocket_aces_heads_up(self, rng):
        result = calculate_equity(
            parse_cards("AcAd"), [], num_opponents=1, num_simulations=20000, rng=rng
        )
        assert result.win == pytest.approx(85.0, abs=2.0)
        assert result.samples == 20000
        assert_sums_to_100(result)

    def test_more_opponents_lowers_equity(self, rng):
        one = calculate_equity("AcAd", num_opponents=1, num_simulations=3000, rng=rng)
        three = calculate_equity("AcAd", num_opponents=3, num_simulations=3000, rng=rng)
        assert three.win < one.win

    def test_seeded_results_repeat(self):
        r1 = calculate_equity("AhKh", "Qh7s2c", num_simulations=500, rng=np.random.default_rng(1))
        r2 = calculate_equity("AhKh", "Qh7s2c", num_simulations=500, rng=np.random.default_rng(1))
        assert r1 == r2

    def test_known_villain_on_river(self, calculator, board_river):
        # KK has a set, AA one pair
        result = calculator.calculate_equity(
            parse_cards("AsAh"), board_river, num_simulations=50,
            villain_cards=parse_cards("KhKc"),
        )
        assert result.win == 0.0
        assert result.lose == 100.0

    def test_split_pot(self, calculator):
        result = calculator.calculate_equity(
            "2c3d", "AsKsQdJhTc", num_simulations=100, villain_cards="4c5d",
        )
        assert result.tie == 100.0
        assert_sums_to_100(result)

    def test_rounded_to_one_decimal(self, calculator, board_flop):
        result = calculator.calculate_equity("AhQh", board_flop, num_simulations=777)
        for value in (result.win, result.tie, result.lose):
            assert round(value, 1) == value
        assert_sums_to_100(result)

    def test_deck_exhausted(self, calculator):
        # 2 hero cards leave 50; 23 opponents need 46 + 5 board cards
        with pytest.raises(DeckExhaustedError):
            calculator.calculate_equity("AsKs", num_opponents=23, num_simulations=1)

    def test_deck_exhausted_reports_counts(self, calculator):
        with pytest.raises(DeckExhaustedError) as exc_info:
            calculator.calculate_equity("AsKs", "Qs7d2c", num_opponents=24, num_simulations=1)
        # 47 unseen cards; 2 board cards plus 48 hole cards needed
        assert exc_info.value.needed == 50
        assert exc_info.value.available == 47

    def test_wrong_hero_count(self, calculator):
        with pytest.raises(InvalidInputError):
            calculator.calculate_equity("AsKsQs")

    def test_duplicate_cards(self, calculator):
        with pytest.raises(InvalidInputError):
            calculator.calculate_equity("AsKs", "AsQd2c")

    def test_too_many_board_cards(self, calculator):
        with pytest.raises(InvalidInputError):
            calculator.calculate_equity("AsKs", "2c3c4c5c6c7c")

    def test_bad_counts(self, calculator):
        with pytest.raises(InvalidInputError):
            calculator.calculate_equity("AsKs", num_opponents=0)
        with pytest.raises(InvalidInputError):
            calculator.calculate_equity("AsKs", num_simulations=0)


class TestEquityVsRange:
    def test_against_dominated_range(self, rng):
        result = calculate_equity_vs_range(
            "AsAh", "Kd7c2s", {"KQs": 1.0, "QJs": 1.0}, sims_per_combo=50, rng=rng
        )
        assert result.win > 70
        assert_sums_to_100(result)

    def test_samples_count_unblocked_combos(self, calculator):
        # The Ks blocks one of the four KQs combos
        result = calculator.calculate_equity_vs_range(
            "AsAh", "Ks7d2c", {"KQs": 1.0}, sims_per_combo=10
        )
        assert result.samples == 30

    def test_empty_range(self, calculator):
        result = calculator.calculate_equity_vs_range("AsAh", [], {}, sims_per_combo=10)
        assert (result.win, result.tie, result.lose, result.samples) == (0.0, 0.0, 100.0, 0)

    def test_fully_blocked_range(self, calculator):
        # Hero and board hold all four aces
        result = calculator.calculate_equity_vs_range(
            "AsAh", "AdAc2s", {"AA": 1.0}, sims_per_combo=10
        )
        assert result.samples == 0
        assert result.lose == 100.0

    def test_zero_weight_skipped(self, calculator):
        result = calculator.calculate_equity_vs_range(
            "AsAh", [], {"KK": 0.0}, sims_per_combo=10
        )
        assert result.samples == 0


class TestHandVsHand:
    def test_river_exact(self, calculator, board_river):
        aa = Hand.from_string("AsAh")
        kk = Hand.from_string("KhKc")

        eq_aa, eq_kk, tie = calculator.hand_vs_hand(aa, kk, board_river)

        assert (eq_aa, eq_kk, tie) == (0.0, 1.0, 0.0)

    def test_flop_overpair(self, calculator, board_flop):
        aa = Hand.from_string("AsAh")
        jj = Hand.from_string("JsJh")

        eq_aa, eq_jj, tie = calculator.hand_vs_hand(aa, jj, board_flop, num_simulations=1000)

        assert eq_aa > 0.8
        assert eq_aa + eq_jj + tie == pytest.approx(1.0)

    def test_overlap_rejected(self, calculator, board_flop):
        with pytest.raises(InvalidInputError):
            calculator.hand_vs_hand(
                Hand.from_string("KsKh"), Hand.from_string("AsAh"), board_flop
            )


class TestPotOdds:
    def test_required_equity(self):
        assert required_equity(100, 50) == pytest.approx(100 / 3)
        assert required_equity(0, 0) == 0.0

    def test_is_profitable_call(self):
        assert is_profitable_call(100, 50, 40.0)
        assert not is_profitable_call(100, 50, 30.0)

    def test_draw_odds_flop(self):
        # Flush draw, two cards to come
        expected = (1 - (38 / 47) * (37 / 46)) * 100
        assert calculate_draw_odds(9, "flop") == pytest.approx(expected)
        assert calculate_draw_odds(9, "flop") == pytest.approx(35.0, abs=0.1)

    def test_draw_odds_turn(self):
        assert calculate_draw_odds(8, "turn") == pytest.approx(8 / 46 * 100)

    def test_draw_odds_river(self):
        assert calculate_draw_odds(9, "river") == 0.0

    def test_draw_odds_invalid(self):
        with pytest.raises(InvalidInputError):
            calculate_draw_odds(9, "preflop")
        with pytest.raises(InvalidInputError):
            calculate_draw_odds(-1, "flop")
