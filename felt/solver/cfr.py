"""
Counterfactual Regret Minimization (CFR) solver.

CFR is an iterative algorithm for finding Nash equilibrium strategies
in extensive-form games. This implementation uses:
- Regret matching for strategy updates
- Full tree walks for every representative hand pair
- Monte Carlo showdown equity between the concrete hole cards
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import numpy as np

from felt.errors import InvalidInputError
from felt.game.cards import CardLike, Hand, board_to_string, parse_cards, ensure_unique
from felt.game.equity import EquityCalculator
from felt.game.ranges import HandRange, expand_hand, normalize_hand, normalize_range
from felt.game.tree import MAX_DEPTH, Action, GameNode, GameTree, build_game_tree, history_string
from .strategy import InfoSetTable, make_info_set_key

logger = logging.getLogger("felt.solver")

# Actions below this average frequency are left out of recommendations
MIN_RECOMMENDED_FREQUENCY = 0.01


@dataclass
class SolverConfig:
    """Configuration for a heads-up CFR solve."""
    stack_size: float = 100.0
    starting_pot: float = 10.0
    bet_sizes: list[float] = field(default_factory=lambda: [0.66])
    raise_sizes: Optional[list[float]] = None  # Defaults to bet_sizes
    max_raises: int = 2
    iterations: int = 100
    board: list[CardLike] = field(default_factory=list)
    ranges: tuple[HandRange, HandRange] = field(default_factory=lambda: ({}, {}))

    max_hands: int = 10               # Representative hands per range
    showdown_simulations: int = 100   # Equity trials per hand pair
    max_depth: int = MAX_DEPTH

    def __post_init__(self):
        self.board = parse_cards(self.board)

    def validate(self) -> None:
        """Raise InvalidInputError for values that cannot describe a spot."""
        if len(self.board) not in (0, 3, 4, 5):
            raise InvalidInputError(f"Board must have 0, 3, 4 or 5 cards, got {len(self.board)}")
        ensure_unique(self.board)
        if self.starting_pot <= 0:
            raise InvalidInputError("starting_pot must be positive")
        if self.stack_size < 0:
            raise InvalidInputError("stack_size must be non-negative")
        if self.iterations < 1:
            raise InvalidInputError("iterations must be at least 1")
        if self.max_raises < 0:
            raise InvalidInputError("max_raises must be non-negative")
        if self.max_hands < 1 or self.showdown_simulations < 1:
            raise InvalidInputError("max_hands and showdown_simulations must be at least 1")
        sizes = list(self.bet_sizes) + list(self.raise_sizes or [])
        if any(s <= 0 for s in sizes):
            raise InvalidInputError("Bet and raise sizes must be positive pot fractions")
        if len(self.ranges) != 2:
            raise InvalidInputError("Exactly two ranges are required")


@dataclass
class SolverResult:
    """
    Output of a solve.

    `strategies` and `action_values` map info set keys to per-action
    average frequencies and counterfactual values, keyed by action code.
    EVs are each player's expected share of the starting pot, net of
    what they invest, so ev_oop + ev_ip equals the starting pot.
    """
    strategies: dict[str, dict[str, float]]
    exploitability: float
    action_values: dict[str, dict[str, float]]
    ev_oop: float
    ev_ip: float
    iterations: int
    solving_time: float  # Seconds

    def to_dict(self) -> dict:
        return {
            "strategies": self.strategies,
            "exploitability": self.exploitability,
            "action_values": self.action_values,
            "ev_oop": self.ev_oop,
            "ev_ip": self.ev_ip,
            "iterations": self.iterations,
            "solving_time": self.solving_time,
        }

    def save(self, filepath: Union[str, Path]) -> None:
        """Save the result as JSON."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> "SolverResult":
        """Load a result saved with `save`."""
        with open(filepath, "r") as f:
            data = json.load(f)
        return cls(**data)


@dataclass
class Recommendation:
    """One action of a recommended mixed strategy."""
    action: str
    probability: float
    ev: Optional[float] = None


class CFRSolver:
    """
    Counterfactual Regret Minimization solver.

    Finds Nash equilibrium strategies through iterative self-play
    and regret minimization.

    Key concepts:
    - Regret: How much better we could have done by taking action a
    - Counterfactual value: EV at a node weighted by opponent's probability
    - Information set: What a player knows (their hand, board + action history)

    Every call to `solve` starts from a fresh info set table, so one
    solver can be reused without results leaking between solves.
    """

    def __init__(
        self,
        config: SolverConfig,
        tree: Optional[GameTree] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize CFR solver.

        Args:
            config: Solver configuration
            tree: Prebuilt game tree; built from config when omitted
            rng: Random source for showdown equity trials
        """
        self.config = config
        self.tree = tree
        self.equity_calc = EquityCalculator(rng)

        self.table = InfoSetTable()
        self.iteration = 0
        self._board_str = ""
        self._equity_cache: dict[tuple[str, str], float] = {}

    def solve(
        self,
        callback: Optional[Callable[[int, float], None]] = None,
    ) -> SolverResult:
        """
        Run CFR algorithm.

        Args:
            callback: Optional callback(iteration, exploitability) for progress

        Returns:
            SolverResult with average strategies
        """
        config = self.config
        config.validate()
        start = time.perf_counter()

        self.table = InfoSetTable()
        self._equity_cache = {}
        self._board_str = board_to_string(config.board)

        tree = self.tree if self.tree is not None else build_game_tree(config)
        self.tree = tree

        hands0 = self._representative_hands(config.ranges[0])
        hands1 = self._representative_hands(config.ranges[1])
        pairs = [
            (h0, h1) for h0 in hands0 for h1 in hands1
            if not set(h0.cards) & set(h1.cards)
        ]

        logger.debug(
            "Solving board=%s pot=%.1f stack=%.1f nodes=%s pairs=%d",
            self._board_str or "-", config.starting_pot, config.stack_size,
            tree.count_nodes()["total"], len(pairs),
        )
        if not pairs:
            logger.warning("No non-conflicting hand pairs; result will be empty")

        for i in range(config.iterations):
            self.iteration = i
            for h0, h1 in pairs:
                self._cfr(tree.root, h0, h1, 1.0, 1.0)

            # Callback for progress tracking
            if callback and i % 100 == 0:
                callback(i, estimate_exploitability(self.table))

        ev0 = 0.0
        if pairs:
            ev0 = float(np.mean([self._average_value(tree.root, h0, h1) for h0, h1 in pairs]))
        half_pot = config.starting_pot / 2

        result = SolverResult(
            strategies=self.table.average_strategies(),
            exploitability=estimate_exploitability(self.table),
            action_values=self.table.average_values(),
            ev_oop=half_pot + ev0,
            ev_ip=half_pot - ev0,
            iterations=config.iterations,
            solving_time=time.perf_counter() - start,
        )
        logger.info(
            "Solved %d iterations in %.2fs: %d info sets, exploitability %.4f",
            result.iterations, result.solving_time,
            len(result.strategies), result.exploitability,
        )
        return result

    def _representative_hands(self, hand_range: HandRange) -> list[Hand]:
        """Top weighted hands of a range, one unblocked combo each."""
        entries = sorted(
            ((h, w) for h, w in normalize_range(hand_range).items() if w > 0),
            key=lambda item: item[1],
            reverse=True,
        )

        hands = []
        for notation, _ in entries:
            combos = expand_hand(notation, self.config.board)
            if combos:
                hands.append(Hand(*combos[0]))
            if len(hands) >= self.config.max_hands:
                break
        return hands

    def _showdown_equity(self, hand0: Hand, hand1: Hand) -> float:
        """Player 0's pot share against player 1, cached per hand pair."""
        key = (str(hand0), str(hand1))
        if key not in self._equity_cache:
            win, _, tie = self.equity_calc.hand_vs_hand(
                hand0, hand1, self.config.board, self.config.showdown_simulations
            )
            self._equity_cache[key] = win + tie / 2
        return self._equity_cache[key]

    def _terminal_value(self, node: GameNode, hand0: Hand, hand1: Hand) -> float:
        """Player 0 payoff at a terminal node."""
        if node.terminal_value is not None:
            return node.terminal_value
        return self.tree.showdown_payoff(node, self._showdown_equity(hand0, hand1))

    def _info_set_key(self, node: GameNode, hand: Hand) -> str:
        return make_info_set_key(node.player, hand.canonical, self._board_str, node.history)

    def _cfr(
        self,
        node: GameNode,
        hand0: Hand,
        hand1: Hand,
        reach0: float,  # Player 0's reach probability
        reach1: float,  # Player 1's reach probability
    ) -> tuple[float, float]:
        """
        Recursive CFR traversal.

        Returns:
            Tuple of (player0_value, player1_value)
        """
        if node.is_terminal:
            value = self._terminal_value(node, hand0, hand1)
            return (value, -value)

        # Player decision node
        player = node.player
        my_hand = hand0 if player == 0 else hand1
        my_reach = reach0 if player == 0 else reach1
        opp_reach = reach1 if player == 0 else reach0

        actions = node.actions
        info_set = self.table.get_info_set(self._info_set_key(node, my_hand), actions)

        # Get current strategy (from regret matching)
        probs = info_set.get_strategy()
        info_set.probabilities = probs

        # Compute action values
        action_values = np.zeros(len(actions))

        for i, action in enumerate(actions):
            child = node.children[action]

            # Update reach probabilities
            if player == 0:
                child_values = self._cfr(child, hand0, hand1, reach0 * probs[i], reach1)
            else:
                child_values = self._cfr(child, hand0, hand1, reach0, reach1 * probs[i])
            action_values[i] = child_values[player]

        # Compute node value
        node_value = float(np.dot(probs, action_values))

        # Update regrets weighted by opponent's reach
        info_set.update_regrets(opp_reach * (action_values - node_value))

        # Update strategy sum for average
        info_set.update_strategy_sum(my_reach)
        info_set.update_values(action_values, opp_reach)

        # Return values for both players
        if player == 0:
            return (node_value, -node_value)  # Zero-sum
        else:
            return (-node_value, node_value)

    def _average_value(self, node: GameNode, hand0: Hand, hand1: Hand) -> float:
        """Player 0 payoff when both players follow their average strategies."""
        if node.is_terminal:
            return self._terminal_value(node, hand0, hand1)

        my_hand = hand0 if node.player == 0 else hand1
        key = self._info_set_key(node, my_hand)
        if key in self.table:
            probs = self.table.info_sets[key].get_average_strategy()
        else:
            probs = np.ones(len(node.children)) / len(node.children)

        return float(sum(
            p * self._average_value(child, hand0, hand1)
            for p, child in zip(probs, node.children.values())
        ))


def estimate_exploitability(table: InfoSetTable) -> float:
    """
    Coarse convergence proxy: mean variance of the average strategy
    within each info set, or 1.0 for an empty table.

    This is not a best-response computation.
    """
    if len(table) == 0:
        return 1.0
    return float(np.mean([np.var(info.get_average_strategy()) for info in table]))


def solve(
    config: SolverConfig,
    rng: Optional[np.random.Generator] = None,
) -> SolverResult:
    """
    Convenience function to solve a spot.

    Args:
        config: Spot and solver settings
        rng: Random source for showdown equity

    Returns:
        SolverResult
    """
    return CFRSolver(config, rng=rng).solve()


def get_recommendation(
    hand: Union[str, Iterable[CardLike]],
    board: Union[str, Iterable[CardLike]],
    history: Union[str, list[Action]],
    player: int,
    strategies: dict[str, dict[str, float]],
    action_values: Optional[dict[str, dict[str, float]]] = None,
) -> list[Recommendation]:
    """
    Look up the mixed strategy for a spot.

    Args:
        hand: Hand notation ('AKs') or hole cards ('AsKs')
        board: Board cards, in any order
        history: Action history string or list of actions
        player: 0 for out of position, 1 for in position
        strategies: SolverResult.strategies
        action_values: SolverResult.action_values, to attach EVs

    Returns:
        Actions with at least 1% frequency, most frequent first; empty
        if the spot was never visited.
    """
    if isinstance(hand, str):
        notation = normalize_hand(hand)
    else:
        notation = Hand.from_cards(hand).canonical
    if not isinstance(history, str):
        history = history_string(history)

    key = make_info_set_key(player, notation, board_to_string(parse_cards(board)), history)
    strategy = strategies.get(key)
    if not strategy:
        return []

    values = (action_values or {}).get(key, {})
    recommendations = [
        Recommendation(action=action, probability=prob, ev=values.get(action))
        for action, prob in strategy.items()
        if prob >= MIN_RECOMMENDED_FREQUENCY
    ]
    return sorted(recommendations, key=lambda r: r.probability, reverse=True)
