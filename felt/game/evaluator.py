"""
Hand evaluation for 5-7 card sets.

Every five-card subset is classified and packed into a single integer
score, so comparing two scores is equivalent to full poker tie-break
logic. For 6 and 7 cards all C(n, 5) subsets are searched.
"""

from dataclasses import dataclass
from enum import IntEnum
from itertools import combinations
from typing import Iterable, Optional, Sequence

from felt.errors import InvalidInputError
from .cards import Card, CardLike, RANK_STR, parse_cards, ensure_unique


class HandRanking(IntEnum):
    """Hand categories from worst to best."""
    HIGH_CARD = 1
    PAIR = 2
    TWO_PAIR = 3
    THREE_OF_A_KIND = 4
    STRAIGHT = 5
    FLUSH = 6
    FULL_HOUSE = 7
    FOUR_OF_A_KIND = 8
    STRAIGHT_FLUSH = 9
    ROYAL_FLUSH = 10

    @property
    def label(self) -> str:
        """Hyphenated name, e.g. 'royal-flush'."""
        return self.name.lower().replace("_", "-")


# Tier multiplier and tie-break slot weights (two decimal digits per slot)
TIER_WEIGHT = 10 ** 12
SLOT_WEIGHTS = (10 ** 10, 10 ** 8, 10 ** 6, 10 ** 4, 10 ** 2)

# Index tuples of every 5-card subset for 5, 6 and 7 card inputs
SUBSET_INDICES = {n: tuple(combinations(range(n), 5)) for n in (5, 6, 7)}

# Approximate share of hands beaten by each category, in percent
PERCENTILE_RANGES = {
    HandRanking.HIGH_CARD: (0.0, 17.4),
    HandRanking.PAIR: (17.4, 60.1),
    HandRanking.TWO_PAIR: (60.1, 64.9),
    HandRanking.THREE_OF_A_KIND: (64.9, 67.0),
    HandRanking.STRAIGHT: (67.0, 67.5),
    HandRanking.FLUSH: (67.5, 69.5),
    HandRanking.FULL_HOUSE: (69.5, 72.1),
    HandRanking.FOUR_OF_A_KIND: (72.1, 72.2),
    HandRanking.STRAIGHT_FLUSH: (72.2, 72.21),
    HandRanking.ROYAL_FLUSH: (72.21, 72.22),
}


@dataclass(frozen=True)
class EvaluatedHand:
    """Result of evaluating a poker hand."""
    ranking: HandRanking
    score: int
    cards: tuple[Card, ...]  # The 5 cards that make the hand
    kickers: tuple[int, ...]  # Rank values used only for tie-breaks
    description: str

    def __str__(self) -> str:
        return self.description


def pack_score(ranking: HandRanking, slots: Sequence[int]) -> int:
    """Pack a category and up to five rank values into one integer."""
    score = int(ranking) * TIER_WEIGHT
    for value, weight in zip(slots, SLOT_WEIGHTS):
        score += value * weight
    return score


def straight_high(values: Iterable[int]) -> Optional[int]:
    """
    Highest card of the best straight among rank values, or None.

    A-5-4-3-2 (the wheel) counts as a five-high straight.
    """
    uniq = set(values)
    if 14 in uniq:
        uniq.add(1)
    for high in range(14, 4, -1):
        if all(v in uniq for v in range(high - 4, high + 1)):
            return high
    return None


def _rank_groups(values: Sequence[int]) -> list[tuple[int, int]]:
    """(count, rank) pairs sorted by count then rank, descending."""
    counts: dict[int, int] = {}
    for v in values:
        counts[v] = counts.get(v, 0) + 1
    return sorted(((c, v) for v, c in counts.items()), reverse=True)


def _classify_five(cards: Sequence[Card]) -> tuple[HandRanking, list[int]]:
    """Category and tie-break slots for exactly five cards."""
    values = sorted((c.rank for c in cards), reverse=True)
    suit = cards[0].suit
    is_flush = all(c.suit == suit for c in cards)
    high = straight_high(values)

    if is_flush and high is not None:
        if high == 14:
            return HandRanking.ROYAL_FLUSH, [14]
        return HandRanking.STRAIGHT_FLUSH, [high]

    groups = _rank_groups(values)
    pattern = [c for c, _ in groups]
    ranks = [v for _, v in groups]

    if pattern[0] == 4:
        return HandRanking.FOUR_OF_A_KIND, ranks
    if pattern[:2] == [3, 2]:
        return HandRanking.FULL_HOUSE, ranks
    if is_flush:
        return HandRanking.FLUSH, values
    if high is not None:
        return HandRanking.STRAIGHT, [high]
    if pattern[0] == 3:
        return HandRanking.THREE_OF_A_KIND, ranks
    if pattern[:2] == [2, 2]:
        return HandRanking.TWO_PAIR, ranks
    if pattern[0] == 2:
        return HandRanking.PAIR, ranks
    return HandRanking.HIGH_CARD, values


def _order_cards(cards: Sequence[Card], ranking: HandRanking, slots: list[int]) -> tuple[Card, ...]:
    """Order the five cards for display: made part first, then kickers."""
    if ranking in (HandRanking.STRAIGHT, HandRanking.STRAIGHT_FLUSH, HandRanking.ROYAL_FLUSH):
        high = slots[0]
        order = list(range(high, high - 5, -1))
        # Wheel: the ace plays low
        order = [14 if v == 1 else v for v in order]
        by_rank = {c.rank: c for c in cards}
        return tuple(by_rank[v] for v in order)

    counts: dict[int, int] = {}
    for c in cards:
        counts[c.rank] = counts.get(c.rank, 0) + 1
    return tuple(sorted(cards, key=lambda c: (counts[c.rank], c.rank, c.suit), reverse=True))


def _describe(ranking: HandRanking, slots: list[int]) -> tuple[str, tuple[int, ...]]:
    """Human-readable description and kicker ranks."""
    r = [RANK_STR[v] for v in slots]

    if ranking == HandRanking.ROYAL_FLUSH:
        return "Royal Flush", ()
    if ranking == HandRanking.STRAIGHT_FLUSH:
        return f"Straight Flush, {r[0]} high", ()
    if ranking == HandRanking.FOUR_OF_A_KIND:
        return f"Four of a Kind, {r[0]}s", (slots[1],)
    if ranking == HandRanking.FULL_HOUSE:
        return f"Full House, {r[0]}s full of {r[1]}s", ()
    if ranking == HandRanking.FLUSH:
        return f"Flush, {r[0]} high", tuple(slots[1:])
    if ranking == HandRanking.STRAIGHT:
        return f"Straight, {r[0]} high", ()
    if ranking == HandRanking.THREE_OF_A_KIND:
        return f"Three of a Kind, {r[0]}s", tuple(slots[1:])
    if ranking == HandRanking.TWO_PAIR:
        return f"Two Pair, {r[0]}s and {r[1]}s", (slots[2],)
    if ranking == HandRanking.PAIR:
        return f"Pair of {r[0]}s", tuple(slots[1:])
    return f"{r[0]} High", tuple(slots[1:])


def _validated(cards: Iterable[CardLike]) -> list[Card]:
    parsed = parse_cards(cards)
    if not 5 <= len(parsed) <= 7:
        raise InvalidInputError(f"Must provide 5-7 cards, got {len(parsed)}")
    ensure_unique(parsed)
    return parsed


def evaluate_hand(cards: Iterable[CardLike]) -> EvaluatedHand:
    """
    Evaluate the best 5-card hand from 5-7 cards.

    Raises:
        InvalidInputError: wrong card count or duplicate cards
    """
    parsed = _validated(cards)

    best_cards: Sequence[Card] = parsed
    best_ranking, best_slots = HandRanking.HIGH_CARD, []
    best_score = -1

    # Exhaustive search over every 5-card subset
    for idx in SUBSET_INDICES[len(parsed)]:
        subset = [parsed[i] for i in idx]
        ranking, slots = _classify_five(subset)
        score = pack_score(ranking, slots)
        if score > best_score:
            best_score = score
            best_cards, best_ranking, best_slots = subset, ranking, slots

    description, kickers = _describe(best_ranking, best_slots)
    return EvaluatedHand(
        ranking=best_ranking,
        score=best_score,
        cards=_order_cards(best_cards, best_ranking, best_slots),
        kickers=kickers,
        description=description,
    )


def compare_hands(hand1: EvaluatedHand, hand2: EvaluatedHand) -> int:
    """Positive if hand1 wins, negative if hand2 wins, 0 on a tie."""
    return hand1.score - hand2.score


def get_hand_percentile(hand: EvaluatedHand) -> float:
    """
    Approximate hand strength percentile (0-100).

    Maps the category to a fixed percentile interval and interpolates
    linearly by the raw tie-break magnitude. This is a rough estimate,
    not an enumeration over all possible hands.
    """
    low, high = PERCENTILE_RANGES[hand.ranking]
    raw = hand.score - int(hand.ranking) * TIER_WEIGHT
    max_raw = 14 * sum(SLOT_WEIGHTS)
    within = min(1.0, raw / max_raw)
    return low + (high - low) * within
