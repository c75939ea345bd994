"""Game tree representation for a heads-up postflop spot."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from felt.errors import InvalidInputError

# Hard cap on actions from the root; deeper nodes become showdowns
MAX_DEPTH = 10

STREET_NAMES = {0: "preflop", 1: "flop", 2: "turn", 3: "river"}
RIVER = 3


class NodeType(Enum):
    """Types of nodes in a game tree."""
    PLAYER = auto()       # Player decision node
    TERMINAL = auto()     # End of hand (showdown or fold)


class ActionType(Enum):
    """Available actions at a decision node."""
    FOLD = auto()
    CHECK = auto()
    CALL = auto()
    BET = auto()
    RAISE = auto()
    ALL_IN = auto()


ACTION_CODES = {
    ActionType.FOLD: "f",
    ActionType.CHECK: "x",
    ActionType.CALL: "c",
    ActionType.BET: "b",
    ActionType.RAISE: "r",
    ActionType.ALL_IN: "a",
}


@dataclass(frozen=True)
class Action:
    """An action in the game tree."""
    action_type: ActionType
    amount: float = 0.0   # Chips added to the pot by this action
    sizing: float = 0.0   # Pot fraction for bets and raises

    @property
    def code(self) -> str:
        """Short code used in action histories, e.g. 'x', 'b50', 'a'."""
        prefix = ACTION_CODES[self.action_type]
        if self.action_type in (ActionType.BET, ActionType.RAISE):
            return f"{prefix}{round(self.sizing * 100)}"
        return prefix

    def __str__(self) -> str:
        if self.amount > 0:
            return f"{self.action_type.name}_{self.amount:.1f}"
        return self.action_type.name


def history_string(actions: list[Action]) -> str:
    """Colon-joined action codes, e.g. 'x:b50:c'."""
    return ":".join(a.code for a in actions)


@dataclass
class GameNode:
    """
    A node in the game tree.

    Player 0 is out of position and acts first on every street. `pot`
    includes the current street's bets; `bets` are this street's
    contributions and `stacks` what each player has behind.
    """
    node_type: NodeType
    player: int = 0
    pot: float = 0.0
    stacks: list[float] = field(default_factory=lambda: [0.0, 0.0])
    bets: list[float] = field(default_factory=lambda: [0.0, 0.0])
    street: int = 1              # 0=preflop, 1=flop, 2=turn, 3=river
    raise_count: int = 0
    depth: int = 0

    # For terminal nodes
    winner: Optional[int] = None            # Set when someone folded
    showdown: bool = False
    terminal_value: Optional[float] = None  # Player 0 fold payoff

    # Tree structure
    children: dict[Action, "GameNode"] = field(default_factory=dict)
    action_history: list[Action] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.node_type == NodeType.TERMINAL

    @property
    def is_player(self) -> bool:
        return self.node_type == NodeType.PLAYER

    @property
    def to_call(self) -> float:
        """Amount the acting player must add to match the opponent."""
        return max(0.0, self.bets[1 - self.player] - self.bets[self.player])

    @property
    def history(self) -> str:
        return history_string(self.action_history)

    @property
    def actions(self) -> list[Action]:
        return list(self.children.keys())


class GameTree:
    """
    Complete game tree for a heads-up spot.

    Both players start with `effective_stack` behind and `starting_pot`
    in the middle. Terminal payoffs are measured for player 0 against
    the starting stack plus half of the starting pot, so the game is
    zero-sum.
    """

    def __init__(
        self,
        starting_pot: float = 6.5,
        effective_stack: float = 100,
        starting_street: int = 1,
        bet_sizes: Optional[list[float]] = None,
        raise_sizes: Optional[list[float]] = None,
        max_raises: int = 3,
        max_depth: int = MAX_DEPTH,
    ):
        """
        Initialize game tree.

        Args:
            starting_pot: Initial pot size
            effective_stack: Stack each player has behind
            starting_street: Starting street (0=preflop, 1=flop, 2=turn, 3=river)
            bet_sizes: Bet sizes as fractions of pot
            raise_sizes: Raise sizes as fractions of pot after calling
            max_raises: Bets plus raises allowed per street
            max_depth: Actions from the root before forcing a showdown
        """
        if starting_pot <= 0:
            raise InvalidInputError("Starting pot must be positive")
        if effective_stack < 0:
            raise InvalidInputError("Stack size must be non-negative")
        if starting_street not in STREET_NAMES:
            raise InvalidInputError(f"Invalid street: {starting_street}")

        self.starting_pot = starting_pot
        self.effective_stack = effective_stack
        self.starting_street = starting_street
        self.bet_sizes = bet_sizes if bet_sizes is not None else [0.5, 1.0]
        self.raise_sizes = raise_sizes if raise_sizes is not None else self.bet_sizes
        self.max_raises = max_raises
        self.max_depth = max_depth
        self.root: Optional[GameNode] = None

    def build(self) -> GameNode:
        """
        Build the game tree.

        Returns:
            Root node of the game tree
        """
        self.root = GameNode(
            node_type=NodeType.PLAYER,
            player=0,  # OOP acts first
            pot=self.starting_pot,
            stacks=[self.effective_stack, self.effective_stack],
            bets=[0.0, 0.0],
            street=self.starting_street,
        )
        self._build_subtree(self.root)
        return self.root

    def _build_subtree(self, node: GameNode) -> None:
        """Recursively build subtree from node."""
        if node.is_terminal:
            return

        if node.depth >= self.max_depth:
            self._truncate(node)
            return

        for action in self.get_available_actions(node):
            child = self.make_child(node, action)
            self._build_subtree(child)

    def get_available_actions(self, node: GameNode) -> list[Action]:
        """
        Get legal actions at a player node.

        Fold is always offered. Bets and raises are skipped when either
        player is covered or the raise cap is reached; all-in is offered
        whenever it adds more than a call.
        """
        if not node.is_player:
            return []

        p = node.player
        stack = node.stacks[p]
        opp_stack = node.stacks[1 - p]
        to_call = node.to_call

        actions = [Action(ActionType.FOLD)]

        if to_call > 0:
            actions.append(Action(ActionType.CALL, min(to_call, stack)))
        else:
            actions.append(Action(ActionType.CHECK))

        can_raise = stack > to_call and opp_stack > 0
        if can_raise and node.raise_count < self.max_raises:
            seen = set()
            sizes = self.bet_sizes if to_call == 0 else self.raise_sizes
            for size in sizes:
                if to_call == 0:
                    amount = size * node.pot
                    action_type = ActionType.BET
                else:
                    amount = to_call + size * (node.pot + to_call)
                    action_type = ActionType.RAISE

                action = Action(action_type, round(amount, 2), size)
                # Sizes sharing a history code would share an info set
                if action.amount <= to_call or action.amount >= stack or action.code in seen:
                    continue
                seen.add(action.code)
                actions.append(action)

        if can_raise:
            actions.append(Action(ActionType.ALL_IN, stack))

        return actions

    def make_child(self, node: GameNode, action: Action) -> GameNode:
        """Create a child node after taking an action."""
        p = node.player
        o = 1 - p
        stacks = node.stacks.copy()
        bets = node.bets.copy()
        history = node.action_history + [action]

        if action.action_type == ActionType.FOLD:
            child = GameNode(
                node_type=NodeType.TERMINAL,
                player=o,
                pot=node.pot,
                stacks=stacks,
                bets=bets,
                street=node.street,
                raise_count=node.raise_count,
                depth=node.depth + 1,
                winner=o,
                action_history=history,
            )
            child.terminal_value = self.fold_payoff(child)

        elif action.action_type == ActionType.CHECK:
            child = GameNode(
                node_type=NodeType.PLAYER,
                player=o,
                pot=node.pot,
                stacks=stacks,
                bets=bets,
                street=node.street,
                raise_count=node.raise_count,
                depth=node.depth + 1,
                action_history=history,
            )
            # Check behind closes the street
            if p == 1:
                self._close_street(child)

        elif action.action_type == ActionType.CALL:
            pot = node.pot + action.amount
            stacks[p] -= action.amount
            bets[p] += action.amount

            # Short all-in call: return the uncalled part
            excess = bets[o] - bets[p]
            if excess > 0:
                stacks[o] += excess
                bets[o] -= excess
                pot -= excess

            child = GameNode(
                node_type=NodeType.PLAYER,
                player=o,
                pot=pot,
                stacks=stacks,
                bets=bets,
                street=node.street,
                raise_count=node.raise_count,
                depth=node.depth + 1,
                action_history=history,
            )
            self._close_street(child)

        elif action.action_type in (ActionType.BET, ActionType.RAISE, ActionType.ALL_IN):
            stacks[p] -= action.amount
            bets[p] += action.amount

            child = GameNode(
                node_type=NodeType.PLAYER,
                player=o,
                pot=node.pot + action.amount,
                stacks=stacks,
                bets=bets,
                street=node.street,
                raise_count=node.raise_count + 1,
                depth=node.depth + 1,
                action_history=history,
            )

        else:
            raise ValueError(f"Unknown action type: {action.action_type}")

        node.children[action] = child
        return child

    def _close_street(self, node: GameNode) -> None:
        """Advance to the next street, or to showdown on the river or all-in."""
        if node.street >= RIVER or min(node.stacks) <= 0:
            node.node_type = NodeType.TERMINAL
            node.showdown = True
            return

        node.street += 1
        node.player = 0
        node.bets = [0.0, 0.0]
        node.raise_count = 0

    def _truncate(self, node: GameNode) -> None:
        """Turn a too-deep node into a showdown, returning any uncalled bet."""
        high = 0 if node.bets[0] > node.bets[1] else 1
        excess = node.bets[high] - node.bets[1 - high]
        if excess > 0:
            node.stacks[high] += excess
            node.bets[high] -= excess
            node.pot -= excess

        node.node_type = NodeType.TERMINAL
        node.showdown = True

    def contributions(self, node: GameNode) -> tuple[float, float]:
        """Chips each player has put in beyond the starting pot."""
        return (
            self.effective_stack - node.stacks[0],
            self.effective_stack - node.stacks[1],
        )

    def fold_payoff(self, node: GameNode) -> float:
        """Player 0 payoff at a fold terminal: the non-folder takes the pot."""
        c0, _ = self.contributions(node)
        won = node.pot if node.winner == 0 else 0.0
        return won - c0 - self.starting_pot / 2

    def showdown_payoff(self, node: GameNode, equity0: float) -> float:
        """Player 0 payoff at a showdown given player 0's pot share."""
        c0, _ = self.contributions(node)
        return equity0 * node.pot - c0 - self.starting_pot / 2

    def count_nodes(self) -> dict[str, int]:
        """Count nodes by type."""
        counts = {
            "total": 0,
            "player": 0,
            "terminal": 0,
        }

        def count_recursive(node: GameNode):
            counts["total"] += 1
            if node.is_player:
                counts["player"] += 1
            elif node.is_terminal:
                counts["terminal"] += 1

            for child in node.children.values():
                count_recursive(child)

        if self.root:
            count_recursive(self.root)

        return counts

    def get_terminal_nodes(self) -> list[GameNode]:
        """Get all terminal nodes in the tree."""
        terminals = []

        def collect_terminals(node: GameNode):
            if node.is_terminal:
                terminals.append(node)
            for child in node.children.values():
                collect_terminals(child)

        if self.root:
            collect_terminals(self.root)

        return terminals


def street_for_board(num_cards: int) -> int:
    """Street index for a board of 0, 3, 4 or 5 cards."""
    streets = {0: 0, 3: 1, 4: 2, 5: 3}
    if num_cards not in streets:
        raise InvalidInputError(f"Board must have 0, 3, 4 or 5 cards, got {num_cards}")
    return streets[num_cards]


def build_game_tree(config) -> GameTree:
    """
    Build the game tree for a solver configuration.

    Args:
        config: SolverConfig (or anything with the same fields)

    Returns:
        Built GameTree
    """
    tree = GameTree(
        starting_pot=config.starting_pot,
        effective_stack=config.stack_size,
        starting_street=street_for_board(len(config.board)),
        bet_sizes=list(config.bet_sizes),
        raise_sizes=list(config.raise_sizes) if config.raise_sizes else None,
        max_raises=config.max_raises,
        max_depth=config.max_depth,
    )
    tree.build()
    return tree
