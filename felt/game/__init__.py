"""Game representation module."""

from .cards import Card, Hand, Deck, parse_cards
from .ranges import HandRange, expand_hand, normalize_hand, parse_range_string, get_range
from .evaluator import HandRanking, EvaluatedHand, evaluate_hand, compare_hands, get_hand_percentile
from .equity import EquityResult, EquityCalculator, calculate_equity, calculate_equity_vs_range
from .board import BoardTexture, DrawInfo, analyze_board_texture, find_draws, find_nuts, find_danger_cards
from .tree import GameTree, GameNode, NodeType, Action, ActionType, build_game_tree

__all__ = [
    "Card",
    "Hand",
    "Deck",
    "parse_cards",
    "HandRange",
    "expand_hand",
    "normalize_hand",
    "parse_range_string",
    "get_range",
    "HandRanking",
    "EvaluatedHand",
    "evaluate_hand",
    "compare_hands",
    "get_hand_percentile",
    "EquityResult",
    "EquityCalculator",
    "calculate_equity",
    "calculate_equity_vs_range",
    "BoardTexture",
    "DrawInfo",
    "analyze_board_texture",
    "find_draws",
    "find_nuts",
    "find_danger_cards",
    "GameTree",
    "GameNode",
    "NodeType",
    "Action",
    "ActionType",
    "build_game_tree",
]
