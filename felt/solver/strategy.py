"""Information sets and the per-solve strategy table."""

from dataclasses import dataclass, field
from typing import Iterator, Union

import numpy as np

from felt.game.tree import Action, history_string


@dataclass
class InfoSet:
    """
    Regrets and strategy for a single information set.

    An information set is identified by:
    - Player position
    - Hand notation
    - Board
    - Action history

    All arrays are aligned with `actions`.
    """
    info_set_key: str
    actions: list[Action]
    probabilities: np.ndarray  # Current strategy

    # For regret matching
    regret_sum: np.ndarray = field(default=None)
    strategy_sum: np.ndarray = field(default=None)

    # Opponent-reach weighted action values, for EV reporting
    value_sum: np.ndarray = field(default=None)
    reach_sum: float = 0.0

    def __post_init__(self):
        if self.regret_sum is None:
            self.regret_sum = np.zeros(len(self.actions))
        if self.strategy_sum is None:
            self.strategy_sum = np.zeros(len(self.actions))
        if self.value_sum is None:
            self.value_sum = np.zeros(len(self.actions))

    @property
    def action_codes(self) -> list[str]:
        return [a.code for a in self.actions]

    def update_regrets(self, regrets: np.ndarray) -> None:
        """
        Update cumulative regrets.

        Args:
            regrets: Regret for each action
        """
        self.regret_sum += regrets

    def get_strategy(self) -> np.ndarray:
        """
        Get current strategy from regrets using regret matching.

        Returns:
            Probability distribution over actions
        """
        positive_regrets = np.maximum(self.regret_sum, 0)
        total = positive_regrets.sum()

        if total > 0:
            return positive_regrets / total
        else:
            # Uniform random if no positive regrets
            return np.ones(len(self.actions)) / len(self.actions)

    def get_average_strategy(self) -> np.ndarray:
        """
        Get average strategy over all iterations.

        This converges to Nash equilibrium in two-player zero-sum games.

        Returns:
            Average probability distribution
        """
        total = self.strategy_sum.sum()
        if total > 0:
            return self.strategy_sum / total
        return np.ones(len(self.actions)) / len(self.actions)

    def update_strategy_sum(self, realization_weight: float) -> None:
        """
        Update strategy sum for average computation.

        Args:
            realization_weight: Probability of reaching this info set
        """
        self.strategy_sum += realization_weight * self.probabilities

    def update_values(self, action_values: np.ndarray, opp_reach: float) -> None:
        """Accumulate counterfactual action values weighted by opponent reach."""
        self.value_sum += opp_reach * action_values
        self.reach_sum += opp_reach

    def get_average_values(self) -> np.ndarray:
        """Average value of each action; zeros if never reached."""
        if self.reach_sum > 0:
            return self.value_sum / self.reach_sum
        return np.zeros(len(self.actions))

    def __repr__(self) -> str:
        action_strs = [
            f"{a.code}: {p:.2f}"
            for a, p in zip(self.actions, self.probabilities)
        ]
        return f"InfoSet({self.info_set_key}, {{{', '.join(action_strs)}}})"


class InfoSetTable:
    """
    Information sets visited during one solve.

    Maps information set keys to InfoSet objects. Owned by a single
    solver and recreated for every solve.
    """

    def __init__(self):
        self.info_sets: dict[str, InfoSet] = {}

    def get_info_set(self, info_set_key: str, actions: list[Action]) -> InfoSet:
        """
        Get or create the info set, starting from a uniform strategy.

        Args:
            info_set_key: Unique identifier for info set
            actions: Available actions at this info set

        Returns:
            InfoSet object
        """
        if info_set_key not in self.info_sets:
            probs = np.ones(len(actions)) / len(actions)
            self.info_sets[info_set_key] = InfoSet(
                info_set_key=info_set_key,
                actions=actions,
                probabilities=probs,
            )
        return self.info_sets[info_set_key]

    def __len__(self) -> int:
        return len(self.info_sets)

    def __contains__(self, info_set_key: str) -> bool:
        return info_set_key in self.info_sets

    def __iter__(self) -> Iterator[InfoSet]:
        return iter(self.info_sets.values())

    def average_strategies(self) -> dict[str, dict[str, float]]:
        """Average strategy of every info set, keyed by action code."""
        return {
            key: dict(zip(info.action_codes, info.get_average_strategy().tolist()))
            for key, info in self.info_sets.items()
        }

    def average_values(self) -> dict[str, dict[str, float]]:
        """Average counterfactual value of every action, keyed by action code."""
        return {
            key: dict(zip(info.action_codes, info.get_average_values().tolist()))
            for key, info in self.info_sets.items()
        }


def make_info_set_key(
    player: int,
    hand: str,
    board: str,
    history: Union[str, list[Action]],
) -> str:
    """
    Create information set key.

    Args:
        player: Player index (0 = OOP, 1 = IP)
        hand: Hand notation, e.g. 'AKs'
        board: Board notation from `board_to_string`, e.g. 'Kh7s2c'
        history: Action history string ('x:b66') or list of actions

    Returns:
        Unique string key for this info set
    """
    if not isinstance(history, str):
        history = history_string(history)
    return f"P{player}|{hand}|{board}|{history}"
