"""Equity calculation utilities."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
from treys import Evaluator

from felt.errors import InvalidInputError
from .cards import Card, CardLike, Deck, Hand, parse_cards, ensure_unique
from .ranges import HandRange, expand_hand

logger = logging.getLogger("felt.equity")

# Largest number of trials drawn in one vectorized batch
BATCH_SIZE = 5000


@dataclass
class EquityResult:
    """Win/tie/lose percentages from a simulation."""
    win: float
    tie: float
    lose: float
    samples: int

    @property
    def equity(self) -> float:
        """Share of the pot won on average, counting ties as half."""
        return self.win + self.tie / 2

    def __str__(self) -> str:
        return (
            f"win {self.win:.1f}% / tie {self.tie:.1f}% / "
            f"lose {self.lose:.1f}% ({self.samples} samples)"
        )


def _to_percentages(wins: float, ties: float, total: float, samples: int) -> EquityResult:
    """Round to one decimal and derive lose so the three sum to 100."""
    if total <= 0:
        return EquityResult(win=0.0, tie=0.0, lose=100.0, samples=samples)
    win = round(wins / total * 100, 1)
    tie = round(ties / total * 100, 1)
    lose = round(100.0 - win - tie, 1)
    return EquityResult(win=win, tie=tie, lose=lose, samples=samples)


class EquityCalculator:
    """
    Monte Carlo equity calculations.

    Hands are scored with the treys lookup-table evaluator. Randomness
    comes from an injected numpy Generator; pass a seeded one for
    reproducible results.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.evaluator = Evaluator()

    def _simulate(
        self,
        hero: list[int],
        board: list[int],
        villains: list[list[int]],
        num_unknown: int,
        deck: Deck,
        num_simulations: int,
    ) -> tuple[int, int, int]:
        """
        Run trials and count outcomes.

        Each trial completes the board, then deals two cards to every
        unknown opponent, all without replacement from `deck`.

        Returns:
            Tuple of (wins, ties, losses)

        Raises:
            DeckExhaustedError: the deck cannot supply one trial, raised
                before any trial runs
        """
        remaining_board = 5 - len(board)
        needed = remaining_board + 2 * num_unknown

        unseen = np.array([c.to_treys() for c in deck.cards], dtype=np.int64)
        wins = ties = losses = 0
        done = 0

        while done < num_simulations:
            batch = min(BATCH_SIZE, num_simulations - done)
            if needed > 0:
                draws = unseen[deck.sample_indices(needed, batch)].tolist()
            else:
                draws = [[]] * batch

            for dealt in draws:
                full_board = board + dealt[:remaining_board]
                # treys ranks: lower is better
                hero_rank = self.evaluator.evaluate(hero, full_board)

                opp_ranks = [self.evaluator.evaluate(v, full_board) for v in villains]
                idx = remaining_board
                for _ in range(num_unknown):
                    opp_ranks.append(
                        self.evaluator.evaluate(dealt[idx:idx + 2], full_board)
                    )
                    idx += 2

                best_opp = min(opp_ranks)
                if hero_rank < best_opp:
                    wins += 1
                elif hero_rank == best_opp:
                    ties += 1
                else:
                    losses += 1

            done += batch

        return wins, ties, losses

    def calculate_equity(
        self,
        hero_cards: Iterable[CardLike],
        community_cards: Iterable[CardLike] = (),
        num_opponents: int = 1,
        num_simulations: int = 10000,
        villain_cards: Optional[Iterable[CardLike]] = None,
    ) -> EquityResult:
        """
        Calculate hero's equity against opponents.

        Known villain cards count as one of the opponents; the rest
        receive random hole cards in every trial.

        Args:
            hero_cards: Hero's two hole cards
            community_cards: Board cards (0-5)
            num_opponents: Total number of opponents
            num_simulations: Number of Monte Carlo trials
            villain_cards: One opponent's hole cards, if known

        Returns:
            EquityResult with percentages rounded to one decimal
        """
        hero = parse_cards(hero_cards)
        board = parse_cards(community_cards)
        villain = parse_cards(villain_cards) if villain_cards is not None else []

        if len(hero) != 2:
            raise InvalidInputError(f"Hero needs exactly 2 cards, got {len(hero)}")
        if len(board) > 5:
            raise InvalidInputError(f"Board has at most 5 cards, got {len(board)}")
        if villain_cards is not None and len(villain) != 2:
            raise InvalidInputError(f"Villain needs exactly 2 cards, got {len(villain)}")
        if num_opponents < 1:
            raise InvalidInputError("num_opponents must be at least 1")
        if num_simulations < 1:
            raise InvalidInputError("num_simulations must be at least 1")
        ensure_unique(hero + board + villain)

        villains = [[c.to_treys() for c in villain]] if villain else []
        num_unknown = num_opponents - len(villains)
        deck = Deck(hero + board + villain, self.rng)

        logger.debug(
            "Equity: hero=%s board=%s opponents=%d sims=%d",
            hero, board, num_opponents, num_simulations,
        )

        wins, ties, _ = self._simulate(
            [c.to_treys() for c in hero],
            [c.to_treys() for c in board],
            villains,
            num_unknown,
            deck,
            num_simulations,
        )
        return _to_percentages(wins, ties, num_simulations, num_simulations)

    def calculate_equity_vs_range(
        self,
        hero_cards: Iterable[CardLike],
        community_cards: Iterable[CardLike],
        villain_range: HandRange,
        sims_per_combo: int = 100,
    ) -> EquityResult:
        """
        Calculate hero's equity against a weighted range.

        Every range entry is expanded into the combos not blocked by hero
        or board cards. Each combo is simulated `sims_per_combo` times and
        weighted by entry weight / number of unblocked combos.

        Returns:
            Weighted EquityResult; lose=100 with zero samples when no
            combo of the range is possible.
        """
        hero = parse_cards(hero_cards)
        board = parse_cards(community_cards)

        if len(hero) != 2:
            raise InvalidInputError(f"Hero needs exactly 2 cards, got {len(hero)}")
        if len(board) > 5:
            raise InvalidInputError(f"Board has at most 5 cards, got {len(board)}")
        if sims_per_combo < 1:
            raise InvalidInputError("sims_per_combo must be at least 1")
        ensure_unique(hero + board)

        hero_t = [c.to_treys() for c in hero]
        board_t = [c.to_treys() for c in board]
        blockers = hero + board

        total_weight = 0.0
        weighted_wins = 0.0
        weighted_ties = 0.0
        samples = 0

        for notation, weight in villain_range.items():
            if weight <= 0:
                continue

            combos = expand_hand(notation, blockers)
            if not combos:
                continue

            combo_weight = weight / len(combos)
            for c1, c2 in combos:
                deck = Deck(blockers + [c1, c2], self.rng)
                wins, ties, _ = self._simulate(
                    hero_t,
                    board_t,
                    [[c1.to_treys(), c2.to_treys()]],
                    0,
                    deck,
                    sims_per_combo,
                )
                weighted_wins += combo_weight * wins / sims_per_combo
                weighted_ties += combo_weight * ties / sims_per_combo
                total_weight += combo_weight
                samples += sims_per_combo

        logger.debug(
            "Equity vs range: hero=%s board=%s entries=%d samples=%d",
            hero, board, len(villain_range), samples,
        )
        return _to_percentages(weighted_wins, weighted_ties, total_weight, samples)

    def hand_vs_hand(
        self,
        hand1: Hand,
        hand2: Hand,
        board: list[Card],
        num_simulations: int = 100,
    ) -> tuple[float, float, float]:
        """
        Calculate equity of hand1 vs hand2 on a board.

        A complete board is evaluated exactly.

        Returns:
            Tuple of (hand1_win, hand2_win, tie) as fractions
        """
        ensure_unique(hand1.cards + hand2.cards + list(board))
        h1 = hand1.to_treys()
        h2 = hand2.to_treys()
        board_t = [c.to_treys() for c in board]

        if len(board_t) == 5:
            r1 = self.evaluator.evaluate(h1, board_t)
            r2 = self.evaluator.evaluate(h2, board_t)
            if r1 < r2:
                return (1.0, 0.0, 0.0)
            elif r1 > r2:
                return (0.0, 1.0, 0.0)
            return (0.0, 0.0, 1.0)

        deck = Deck(hand1.cards + hand2.cards + list(board), self.rng)
        wins, ties, losses = self._simulate(
            h1, board_t, [h2], 0, deck, num_simulations
        )
        total = num_simulations
        return (wins / total, losses / total, ties / total)


def calculate_equity(
    hero_cards: Iterable[CardLike],
    community_cards: Iterable[CardLike] = (),
    num_opponents: int = 1,
    num_simulations: int = 10000,
    villain_cards: Optional[Iterable[CardLike]] = None,
    rng: Optional[np.random.Generator] = None,
) -> EquityResult:
    """
    Calculate hand equity against random opponent(s).

    See EquityCalculator.calculate_equity.
    """
    return EquityCalculator(rng).calculate_equity(
        hero_cards, community_cards, num_opponents, num_simulations, villain_cards
    )


def calculate_equity_vs_range(
    hero_cards: Iterable[CardLike],
    community_cards: Iterable[CardLike],
    villain_range: HandRange,
    sims_per_combo: int = 100,
    rng: Optional[np.random.Generator] = None,
) -> EquityResult:
    """
    Calculate hand equity against a weighted villain range.

    See EquityCalculator.calculate_equity_vs_range.
    """
    return EquityCalculator(rng).calculate_equity_vs_range(
        hero_cards, community_cards, villain_range, sims_per_combo
    )


def required_equity(pot: float, to_call: float) -> float:
    """Minimum equity (percent) for a break-even call."""
    if pot < 0 or to_call < 0:
        raise InvalidInputError("Pot and call amount must be non-negative")
    if pot + to_call == 0:
        return 0.0
    return to_call / (pot + to_call) * 100


def is_profitable_call(pot: float, to_call: float, equity: float) -> bool:
    """Whether an equity (percent) beats the pot odds of a call."""
    return equity > required_equity(pot, to_call)


def calculate_draw_odds(outs: int, street: str) -> float:
    """
    Probability (percent) of hitting one of `outs` by the river.

    Exact for two cards to come on the flop (47 then 46 unseen cards)
    and one card on the turn (46 unseen). Zero on the river.
    """
    if not 0 <= outs <= 46:
        raise InvalidInputError(f"Invalid number of outs: {outs}")

    street = street.lower()
    if street == "flop":
        miss_turn = (47 - outs) / 47
        miss_river = (46 - outs) / 46
        return (1 - miss_turn * miss_river) * 100
    elif street == "turn":
        return outs / 46 * 100
    elif street == "river":
        return 0.0
    raise InvalidInputError(f"Unknown street: {street!r}")
