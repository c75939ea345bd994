"""Tests for hand range notation and expansion."""

import pytest

from felt.errors import InvalidInputError
from felt.game.cards import parse_cards
from felt.game.ranges import (
    PRESET_RANGES,
    combo_count,
    expand_hand,
    get_all_hands,
    get_range,
    is_hand_in_range,
    normalize_hand,
    parse_range,
    parse_range_string,
    range_combos,
    range_percentage,
)


class TestNormalizeHand:
    def test_canonical_passthrough(self):
        assert normalize_hand("AKs") == "AKs"
        assert normalize_hand("TT") == "TT"

    def test_orders_ranks(self):
        assert normalize_hand("KAs") == "AKs"
        assert normalize_hand("kao") == "AKo"

    def test_explicit_cards(self):
        assert normalize_hand("AsKs") == "AKs"
        assert normalize_hand("KdAh") == "AKo"
        assert normalize_hand("Kd Kh") == "KK"

    def test_missing_suffix(self):
        with pytest.raises(InvalidInputError):
            normalize_hand("AK")

    def test_invalid(self):
        with pytest.raises(InvalidInputError):
            normalize_hand("AAs")
        with pytest.raises(InvalidInputError):
            normalize_hand("XYZ")


class TestExpandHand:
    def test_pair_combos(self):
        assert len(expand_hand("AA")) == 6
        assert combo_count("AA") == 6

    def test_suited_combos(self):
        combos = expand_hand("AKs")
        assert len(combos) == 4
        assert all(c1.suit == c2.suit for c1, c2 in combos)

    def test_offsuit_combos(self):
        combos = expand_hand("AKo")
        assert len(combos) == 12
        assert all(c1.suit != c2.suit for c1, c2 in combos)

    def test_blockers_removed(self):
        blockers = parse_cards("As")
        assert len(expand_hand("AA", blockers)) == 3
        assert len(expand_hand("AKs", blockers)) == 3

        for c1, c2 in expand_hand("AKo", parse_cards("AsKh")):
            assert str(c1) not in ("As", "Kh")
            assert str(c2) not in ("As", "Kh")


class TestParseRange:
    def test_get_all_hands(self):
        hands = get_all_hands()
        # 13 pairs + 78 suited + 78 offsuit = 169
        assert len(hands) == 169
        assert "AA" in hands
        assert "72o" in hands

    def test_parse_range_single(self):
        assert parse_range("AA") == ["AA"]

    def test_parse_range_pair_plus(self):
        hands = parse_range("TT+")
        assert hands == ["TT", "JJ", "QQ", "KK", "AA"]

    def test_parse_range_pair_range(self):
        assert parse_range("22-55") == ["22", "33", "44", "55"]

    def test_parse_range_pair_range_reversed(self):
        assert parse_range("55-22") == ["22", "33", "44", "55"]

    def test_parse_range_rejects_non_pair_dash(self):
        for token in ("AK-QJ", "A2-A5", "2-55", "22--55", "22_55"):
            with pytest.raises(InvalidInputError):
                parse_range(token)
        with pytest.raises(InvalidInputError):
            parse_range_string("TT+,AK-QJ")

    def test_parse_range_suited_plus(self):
        hands = parse_range("ATs+")
        assert hands == ["ATs", "AJs", "AQs", "AKs"]

    def test_range_string_weights(self):
        hand_range = parse_range_string("AA,KK,AKs:0.5,TT+")
        assert hand_range["AKs"] == 0.5
        assert hand_range["AA"] == 1.0
        assert "JJ" in hand_range

    def test_range_string_bad_weight(self):
        with pytest.raises(InvalidInputError):
            parse_range_string("AA:2")
        with pytest.raises(InvalidInputError):
            parse_range_string("AA:high")


class TestRangeHelpers:
    def test_range_combos(self):
        assert range_combos({"AA": 1.0, "AKs": 0.5}) == 8.0

    def test_range_percentage(self):
        assert range_percentage({"AA": 1.0}) == pytest.approx(6 / 1326 * 100)

    def test_is_hand_in_range(self):
        hand_range = parse_range_string("AKs:0.5,QQ")
        assert is_hand_in_range("AsKs", hand_range) == (True, 0.5)
        assert is_hand_in_range("AKo", hand_range) == (False, 0.0)

    def test_presets_parse(self):
        for preset in PRESET_RANGES:
            hand_range = preset.hand_range
            assert hand_range
            assert all(0 < w <= 1 for w in hand_range.values())

    def test_preset_sizes(self):
        utg = get_range("UTG_open_100bb")
        btn = get_range("BTN_open_100bb")
        assert range_percentage(utg) < range_percentage(btn)

    def test_unknown_preset(self):
        assert get_range("nope") is None
