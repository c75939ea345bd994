"""Tests for board texture and draw analysis."""

import pytest

from felt.errors import InvalidInputError
from felt.game.board import (
    BACKDOOR_FLUSH_PROB, MAX_DANGER_CARDS, MAX_NUT_HANDS,
    analyze_board_texture, find_danger_cards, find_draws, find_nuts,
)
from felt.game.cards import Suit
from felt.game.equity import calculate_draw_odds


class TestBoardTexture:
    def test_dry_rainbow(self, board_flop):
        texture = analyze_board_texture(board_flop)
        assert texture.is_rainbow
        assert not texture.is_paired
        assert not texture.is_connected
        assert texture.high_card == 13
        assert texture.texture == "dry"
        assert texture.danger_level == "low"

    def test_monotone(self):
        texture = analyze_board_texture("Ah9h4h")
        assert texture.is_monotone
        assert texture.flush_suit == Suit.HEARTS
        assert texture.texture == "wet"
        assert texture.danger_level == "high"

    def test_connected_two_tone(self):
        texture = analyze_board_texture("JhTh9c")
        assert texture.is_two_tone
        assert texture.is_connected
        assert texture.gaps == 0
        assert texture.has_oesd
        assert texture.flush_draw_suit == Suit.HEARTS
        assert texture.texture == "wet"

    def test_paired(self):
        texture = analyze_board_texture("KsKd7c")
        assert texture.is_paired
        assert texture.pair_rank == 13
        assert not texture.is_trips
        assert texture.texture == "dry"
        assert texture.danger_level == "medium"

    def test_trips(self):
        texture = analyze_board_texture("7s7d7c")
        assert texture.is_paired
        assert texture.is_trips

    def test_wheel_connectivity(self):
        texture = analyze_board_texture("As3d5c")
        assert texture.is_connected

    def test_empty_board(self):
        texture = analyze_board_texture([])
        assert texture.texture == "dry"
        assert texture.danger_level == "low"
        assert texture.high_card is None

    def test_too_many_cards(self):
        with pytest.raises(InvalidInputError):
            analyze_board_texture("AsKsQsJsTs9s")


class TestFindDraws:
    def test_flush_draw(self):
        draws = find_draws("AhKh", "Qh7h2c")
        types = [d.type for d in draws]
        assert "flush" in types

        flush = draws[types.index("flush")]
        assert flush.outs == 9
        assert flush.probability == pytest.approx(35.0)
        assert len(flush.cards) == 4

    def test_open_ended(self):
        draws = find_draws("9h8d", "7c6s2h")
        straight = next(d for d in draws if d.type == "straight")
        assert straight.outs == 8
        assert straight.probability == round(calculate_draw_odds(8, "flop"), 1)

    def test_gutshot(self):
        draws = find_draws("9h5d", "7c6s2h")
        gutshot = next(d for d in draws if d.type == "gutshot")
        assert gutshot.outs == 4
        assert not any(d.type == "straight" for d in draws)

    def test_one_ended_straight(self):
        # AKQJ only fills with a ten
        draws = find_draws("AhKd", "QcJs4h")
        straight = next(d for d in draws if d.type == "straight")
        assert straight.outs == 4

    def test_backdoor_flush_on_flop(self):
        draws = find_draws("AhKh", "Qh7s2c")
        backdoor = next(d for d in draws if d.type == "backdoor-flush")
        assert backdoor.outs == 10
        assert backdoor.probability == BACKDOOR_FLUSH_PROB

    def test_no_backdoor_on_turn(self):
        draws = find_draws("AhKh", "Qh7s2c3d")
        assert not any(d.type == "backdoor-flush" for d in draws)

    def test_overcards(self):
        draws = find_draws("AhQd", "Js7c2h")
        overcards = next(d for d in draws if d.type == "overcards")
        assert overcards.outs == 6

    def test_paired_hand_has_no_overcards(self, board_flop):
        draws = find_draws("AhKd", board_flop)
        assert draws == []

    def test_made_straight_is_not_a_draw(self):
        draws = find_draws("9h8d", "7c6s5h")
        assert not any(d.type in ("straight", "gutshot") for d in draws)

    def test_board_only_flush_draw_ignored(self):
        # Hero holds no spade
        draws = find_draws("AhKd", "Qs7s2s3d")
        assert not any(d.type == "flush" for d in draws)

    def test_river_has_no_draws(self, board_river):
        assert find_draws("AhQh", board_river) == []

    def test_invalid_hole_cards(self, board_flop):
        with pytest.raises(InvalidInputError):
            find_draws("Ah", board_flop)
        with pytest.raises(InvalidInputError):
            find_draws("KsQh", board_flop)


class TestFindNuts:
    def test_flush_board(self):
        nuts = find_nuts("Ah9h4h")
        assert nuts[0].description == "Nut Flush (Ah)"
        assert nuts[0].ranking == 1

    def test_paired_board(self):
        nuts = find_nuts("KsKd7c")
        assert nuts[0].hand == "KK"
        assert nuts[0].description.startswith("Quads")
        assert [n.ranking for n in nuts] == list(range(1, len(nuts) + 1))

    def test_dry_board(self, board_flop):
        nuts = find_nuts(board_flop)
        assert nuts[0].description == "Set of Ks"
        assert nuts[1].hand == "K7"

    def test_capped(self):
        nuts = find_nuts("AhAd9h4h")
        assert len(nuts) <= MAX_NUT_HANDS

    def test_short_board(self):
        nuts = find_nuts("AhKd")
        assert len(nuts) == 1
        assert nuts[0].description == "Any hand"


class TestDangerCards:
    def test_flush_completing_card(self):
        dangers = find_danger_cards("Kh7h2c")
        assert dangers[0].severity == "high"
        assert dangers[0].suit == Suit.HEARTS

    def test_hero_flush_draw_not_dangerous(self):
        dangers = find_danger_cards("Kh7h2c", hero_cards="AhQh")
        assert not any(d.reason == "Completes flush draw" for d in dangers)

    def test_dry_board(self, board_flop):
        dangers = find_danger_cards(board_flop)
        pairing = {d.rank for d in dangers if d.reason.startswith("Pairs the board")}
        assert pairing == {13, 7, 2}
        assert any(d.rank == 14 and d.severity == "low" for d in dangers)

    def test_connected_board(self):
        dangers = find_danger_cards("9h8d6c")
        assert any(d.reason == "Could complete straight" for d in dangers)
        assert len(dangers) <= MAX_DANGER_CARDS

    def test_empty_board(self):
        assert find_danger_cards([]) == []
