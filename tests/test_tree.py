"""Tests for game tree construction."""

import pytest

from felt.errors import InvalidInputError
from felt.game.tree import (
    Action, ActionType, GameTree, NodeType, history_string, street_for_board,
)


def river_tree(**kwargs) -> GameTree:
    params = dict(
        starting_pot=10, effective_stack=100, starting_street=3,
        bet_sizes=[0.5], max_raises=1,
    )
    params.update(kwargs)
    tree = GameTree(**params)
    tree.build()
    return tree


def child_by_code(node, code):
    return next(c for a, c in node.children.items() if a.code == code)


class TestActions:
    def test_codes(self):
        assert Action(ActionType.CHECK).code == "x"
        assert Action(ActionType.BET, 5.0, 0.5).code == "b50"
        assert Action(ActionType.RAISE, 15.0, 0.66).code == "r66"
        assert Action(ActionType.ALL_IN, 100.0).code == "a"

    def test_history_string(self):
        actions = [Action(ActionType.CHECK), Action(ActionType.BET, 5.0, 0.5)]
        assert history_string(actions) == "x:b50"
        assert history_string([]) == ""

    def test_root_actions(self):
        tree = river_tree()
        codes = [a.code for a in tree.root.actions]
        assert codes == ["f", "x", "b50", "a"]

    def test_facing_bet(self):
        tree = river_tree()
        node = child_by_code(tree.root, "b50")
        assert node.player == 1
        assert node.to_call == 5.0

        # Raise cap of one is already used by the bet
        codes = [a.code for a in node.actions]
        assert codes == ["f", "c", "a"]

    def test_raise_sizing(self):
        tree = river_tree(max_raises=2)
        node = child_by_code(tree.root, "b50")
        raise_action = next(a for a in node.actions if a.action_type == ActionType.RAISE)
        # Call 5, then half of the 20 chip pot
        assert raise_action.amount == 15.0

    def test_sizes_with_same_code_deduplicated(self):
        tree = river_tree(bet_sizes=[0.661, 0.664, 1.0])
        codes = [a.code for a in tree.root.actions]
        assert codes == ["f", "x", "b66", "b100", "a"]
        bet = next(a for a in tree.root.actions if a.code == "b66")
        assert bet.sizing == 0.661

    def test_sibling_histories_unique(self):
        tree = river_tree(bet_sizes=[0.661, 0.664], max_raises=2)
        stack = [tree.root]
        while stack:
            node = stack.pop()
            histories = [child.history for child in node.children.values()]
            assert len(histories) == len(set(histories))
            stack.extend(node.children.values())

    def test_no_raise_without_chips(self):
        tree = river_tree(effective_stack=0)
        codes = [a.code for a in tree.root.actions]
        assert codes == ["f", "x"]


class TestTransitions:
    def test_check_check_river_showdown(self):
        tree = river_tree()
        node = child_by_code(child_by_code(tree.root, "x"), "x")
        assert node.is_terminal
        assert node.showdown
        assert node.history == "x:x"

    def test_check_check_advances_street(self):
        tree = GameTree(starting_pot=10, effective_stack=100, starting_street=1,
                        bet_sizes=[0.5], max_raises=1, max_depth=4)
        tree.build()
        node = child_by_code(child_by_code(tree.root, "x"), "x")
        assert node.is_player
        assert node.street == 2
        assert node.player == 0
        assert node.bets == [0.0, 0.0]

    def test_bet_call_updates_pot(self):
        tree = river_tree()
        node = child_by_code(child_by_code(tree.root, "b50"), "c")
        assert node.is_terminal
        assert node.pot == 20.0
        assert node.stacks == [95.0, 95.0]

    def test_all_in_call_goes_to_showdown(self):
        tree = GameTree(starting_pot=10, effective_stack=50, starting_street=1,
                        bet_sizes=[0.5], max_raises=1, max_depth=4)
        tree.build()
        node = child_by_code(child_by_code(tree.root, "a"), "c")
        assert node.is_terminal
        assert node.showdown
        assert node.street == 1

    def test_depth_cap_refunds_uncalled_bet(self):
        tree = river_tree(max_depth=1)
        node = child_by_code(tree.root, "b50")
        assert node.is_terminal
        assert node.showdown
        assert node.pot == 10.0
        assert node.stacks == [100.0, 100.0]


class TestPayoffs:
    def test_fold_to_bet(self):
        tree = river_tree()
        node = child_by_code(child_by_code(tree.root, "b50"), "f")
        assert node.winner == 0
        # Player 0 wins the starting pot: 15 back after putting in 5
        assert node.terminal_value == pytest.approx(5.0)

    def test_root_fold(self):
        tree = river_tree()
        node = child_by_code(tree.root, "f")
        assert node.winner == 1
        assert node.terminal_value == pytest.approx(-5.0)

    def test_showdown_payoff(self):
        tree = river_tree()
        node = child_by_code(child_by_code(tree.root, "b50"), "c")
        assert tree.showdown_payoff(node, 1.0) == pytest.approx(10.0)
        assert tree.showdown_payoff(node, 0.0) == pytest.approx(-10.0)
        assert tree.showdown_payoff(node, 0.5) == pytest.approx(0.0)


class TestTreeStats:
    def test_count_nodes(self):
        tree = river_tree()
        counts = tree.count_nodes()
        assert counts["total"] == counts["player"] + counts["terminal"]
        assert counts["terminal"] == len(tree.get_terminal_nodes())

    def test_every_leaf_is_terminal(self):
        tree = river_tree()
        for node in tree.get_terminal_nodes():
            assert not node.children
            assert node.node_type == NodeType.TERMINAL
            assert node.showdown or node.winner is not None

    def test_unbuilt_tree(self):
        tree = GameTree()
        assert tree.count_nodes()["total"] == 0


class TestValidation:
    def test_invalid_pot(self):
        with pytest.raises(InvalidInputError):
            GameTree(starting_pot=0)

    def test_invalid_street(self):
        with pytest.raises(InvalidInputError):
            GameTree(starting_street=4)

    def test_street_for_board(self):
        assert street_for_board(0) == 0
        assert street_for_board(3) == 1
        assert street_for_board(5) == 3
        with pytest.raises(InvalidInputError):
            street_for_board(2)
