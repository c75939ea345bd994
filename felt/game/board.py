"""
Board texture and draw analysis.

Everything here is a pure function of the cards passed in. The nut and
danger-card lists are structural heuristics meant for explanations, not
an enumeration of every possible holding.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from felt.errors import InvalidInputError
from .cards import Card, CardLike, RANK_STR, SUIT_STR, parse_cards, ensure_unique
from .equity import calculate_draw_odds
from .evaluator import straight_high

# Approximate chance of running out a backdoor flush (percent)
BACKDOOR_FLUSH_PROB = 4.2

MAX_NUT_HANDS = 5
MAX_DANGER_CARDS = 10


@dataclass
class BoardTexture:
    """Classification of the community cards."""
    is_paired: bool = False
    pair_rank: Optional[int] = None
    is_trips: bool = False
    is_monotone: bool = False
    is_two_tone: bool = False
    is_rainbow: bool = False
    flush_suit: Optional[int] = None
    flush_draw_suit: Optional[int] = None
    is_connected: bool = False
    gaps: int = 0
    has_gutshot: bool = False
    has_oesd: bool = False
    high_card: Optional[int] = None
    texture: str = "dry"          # dry, semi-wet, wet
    danger_level: str = "low"     # low, medium, high


@dataclass
class DrawInfo:
    """A draw available to a hand."""
    type: str  # flush, straight, gutshot, overcards, backdoor-flush
    outs: int
    cards: tuple[Card, ...]
    probability: float  # Percent chance to hit by the river


@dataclass
class NutHand:
    """A strong possible holding on a board, ranked 1 = nuts."""
    description: str
    hand: str
    ranking: int


@dataclass
class DangerCard:
    """A turn or river card that could change the best hand."""
    rank: int
    reason: str
    severity: str  # low, medium, high
    suit: Optional[int] = None

    def __str__(self) -> str:
        suit = SUIT_STR[self.suit] if self.suit is not None else "x"
        return f"{RANK_STR[self.rank]}{suit}: {self.reason}"


def _suit_counts(cards: Iterable[Card]) -> dict[int, int]:
    counts: dict[int, int] = {}
    for card in cards:
        counts[card.suit] = counts.get(card.suit, 0) + 1
    return counts


def _rank_counts(cards: Iterable[Card]) -> dict[int, int]:
    counts: dict[int, int] = {}
    for card in cards:
        counts[card.rank] = counts.get(card.rank, 0) + 1
    return counts


def _straight_values(cards: Iterable[Card]) -> list[int]:
    """Sorted unique rank values, with an Ace also counted as 1."""
    uniq = sorted({c.rank for c in cards})
    if 14 in uniq:
        uniq = [1] + uniq
    return uniq


def _connectivity(cards: list[Card]) -> tuple[bool, int]:
    """(connected, total gaps) between sorted unique ranks."""
    values = sorted({c.rank for c in cards})
    if len(values) < 2:
        return False, 0

    gaps = sum(values[i] - values[i - 1] - 1 for i in range(1, len(values)))

    # Ace plus a wheel card makes an Ace-low straight possible
    if 14 in values and any(v in values for v in (2, 3, 4, 5)):
        gaps = min(gaps, len(values) - 1)

    return gaps <= 2, gaps


def _board_straight_flags(cards: list[Card]) -> tuple[bool, bool]:
    """(has_oesd, has_gutshot) for the board ranks, sliding a 3-value window."""
    values = _straight_values(cards)
    has_oesd = False
    has_gutshot = False

    for i in range(1, len(values)):
        if values[i] - values[i - 1] == 1:
            has_gutshot = True

    for i in range(len(values) - 2):
        span = values[i + 2] - values[i]
        if span == 2:
            has_oesd = True
        if span <= 4:
            has_gutshot = True

    return has_oesd, has_gutshot


def analyze_board_texture(board: Iterable[CardLike]) -> BoardTexture:
    """
    Classify 0-5 community cards.

    Wetness factors are monotone, two-tone with an open-ender, tight
    connectivity (gaps <= 1) and a paired board that is also two-tone
    or open-ended. Two factors (or any monotone board) make it wet.
    """
    cards = parse_cards(board)
    if len(cards) > 5:
        raise InvalidInputError(f"Board has at most 5 cards, got {len(cards)}")
    ensure_unique(cards)

    if not cards:
        return BoardTexture()

    suit_counts = _suit_counts(cards)
    rank_counts = _rank_counts(cards)

    # Pairing
    paired_ranks = sorted(
        (r for r, n in rank_counts.items() if n >= 2), reverse=True
    )
    is_paired = bool(paired_ranks)
    is_trips = any(n >= 3 for n in rank_counts.values())

    # Suits
    max_suit = max(suit_counts.values())
    is_monotone = max_suit >= 3 and len(cards) == 3
    is_two_tone = max_suit == 2
    is_rainbow = max_suit == 1

    flush_suit = next((s for s, n in suit_counts.items() if n >= 3), None)
    flush_draw_suit = None
    if flush_suit is None:
        flush_draw_suit = next((s for s, n in suit_counts.items() if n == 2), None)

    # Connectedness
    is_connected, gaps = _connectivity(cards)
    has_oesd, has_gutshot = _board_straight_flags(cards)

    wet_factors = sum([
        is_monotone,
        is_two_tone and has_oesd,
        is_connected and gaps <= 1,
        is_paired and (is_two_tone or has_oesd),
    ])

    if wet_factors >= 2 or is_monotone:
        texture, danger = "wet", "high"
    elif wet_factors == 1 or (is_two_tone and not is_paired):
        texture, danger = "semi-wet", "medium"
    else:
        texture = "dry"
        danger = "medium" if is_paired else "low"

    return BoardTexture(
        is_paired=is_paired,
        pair_rank=paired_ranks[0] if paired_ranks else None,
        is_trips=is_trips,
        is_monotone=is_monotone,
        is_two_tone=is_two_tone,
        is_rainbow=is_rainbow,
        flush_suit=flush_suit,
        flush_draw_suit=flush_draw_suit,
        is_connected=is_connected,
        gaps=gaps,
        has_gutshot=has_gutshot,
        has_oesd=has_oesd,
        high_card=max(c.rank for c in cards),
        texture=texture,
        danger_level=danger,
    )


def _window_cards(cards: list[Card], window: list[int]) -> tuple[Card, ...]:
    """Cards whose rank (Ace as 1 or 14) falls in a straight window."""
    wanted = set(window)
    if 1 in wanted:
        wanted.add(14)
    return tuple(c for c in cards if c.rank in wanted)


def _find_straight_draw(hole: list[Card], cards: list[Card], street: str) -> Optional[DrawInfo]:
    """Best straight draw using at least one hole card."""
    values = _straight_values(cards)
    hole_values = {c.rank for c in hole} | ({1} if any(c.rank == 14 for c in hole) else set())

    windows = [values[i:i + 4] for i in range(len(values) - 3)]
    windows = [w for w in windows if hole_values & set(w)]

    # Four in a row: open-ended unless capped by the Ace at either end
    for window in reversed(windows):
        if window[3] - window[0] == 3:
            one_ended = window[0] == 1 or window[3] == 14
            outs = 4 if one_ended else 8
            return DrawInfo(
                type="straight",
                outs=outs,
                cards=_window_cards(cards, window),
                probability=round(calculate_draw_odds(outs, street), 1),
            )

    # Four within a span of five: one inside card fills it
    for window in reversed(windows):
        if window[3] - window[0] == 4:
            return DrawInfo(
                type="gutshot",
                outs=4,
                cards=_window_cards(cards, window),
                probability=round(calculate_draw_odds(4, street), 1),
            )

    return None


def find_draws(hole_cards: Iterable[CardLike], board: Iterable[CardLike]) -> list[DrawInfo]:
    """
    Find draws available to hole cards on a 3 or 4 card board.

    Only draws the hole cards contribute to are reported, and made
    flushes or straights are not draws. On other board sizes the
    result is empty.
    """
    hole = parse_cards(hole_cards)
    community = parse_cards(board)
    if len(hole) != 2:
        raise InvalidInputError(f"Hole cards must be exactly 2, got {len(hole)}")
    ensure_unique(hole + community)

    if len(community) == 3:
        street = "flop"
    elif len(community) == 4:
        street = "turn"
    else:
        return []

    draws = []
    cards = hole + community
    hole_suits = {c.suit for c in hole}

    # Flush draws
    for suit, count in sorted(_suit_counts(cards).items()):
        if suit not in hole_suits:
            continue
        suited = tuple(c for c in cards if c.suit == suit)
        if count == 4:
            draws.append(DrawInfo(
                type="flush",
                outs=9,
                cards=suited,
                probability=round(calculate_draw_odds(9, street), 1),
            ))
        elif count == 3 and street == "flop":
            draws.append(DrawInfo(
                type="backdoor-flush",
                outs=10,
                cards=suited,
                probability=BACKDOOR_FLUSH_PROB,
            ))

    # Straight draws
    if straight_high(c.rank for c in cards) is None:
        straight = _find_straight_draw(hole, cards, street)
        if straight is not None:
            draws.append(straight)

    # Overcards, only while unpaired
    board_high = max(c.rank for c in community)
    board_ranks = {c.rank for c in community}
    paired = hole[0].rank == hole[1].rank or any(c.rank in board_ranks for c in hole)
    overcards = tuple(c for c in hole if c.rank > board_high)
    if overcards and not paired:
        outs = 3 * len(overcards)
        draws.append(DrawInfo(
            type="overcards",
            outs=outs,
            cards=overcards,
            probability=round(calculate_draw_odds(outs, street), 1),
        ))

    return draws


def find_nuts(board: Iterable[CardLike]) -> list[NutHand]:
    """
    Strongest holdings on a board, best first.

    A heuristic based on board structure: a three-flush makes the nut
    flush, a paired board makes quads, then top set, top two pair and
    top pair top kicker.
    """
    cards = parse_cards(board)
    if len(cards) < 3:
        return [NutHand(description="Any hand", hand="??", ranking=1)]

    nuts: list[NutHand] = []
    texture = analyze_board_texture(cards)

    if texture.flush_suit is not None:
        s = SUIT_STR[texture.flush_suit]
        nuts.append(NutHand(
            description=f"Nut Flush (A{s})",
            hand=f"A{s} x{s}",
            ranking=1,
        ))

    if texture.is_paired and texture.pair_rank is not None:
        r = RANK_STR[texture.pair_rank]
        nuts.append(NutHand(
            description=f"Quads ({r}{r})",
            hand=f"{r}{r}",
            ranking=len(nuts) + 1,
        ))

    ranks = sorted({c.rank for c in cards}, reverse=True)
    top = RANK_STR[ranks[0]]

    nuts.append(NutHand(
        description=f"Set of {top}s",
        hand=f"{top}{top}",
        ranking=len(nuts) + 1,
    ))

    if len(ranks) >= 2:
        second = RANK_STR[ranks[1]]
        nuts.append(NutHand(
            description=f"Top Two Pair ({top}s and {second}s)",
            hand=f"{top}{second}",
            ranking=len(nuts) + 1,
        ))

    nuts.append(NutHand(
        description=f"Top Pair Top Kicker ({top}s with A)",
        hand=f"A{top}",
        ranking=len(nuts) + 1,
    ))

    return nuts[:MAX_NUT_HANDS]


def find_danger_cards(
    board: Iterable[CardLike],
    hero_cards: Optional[Iterable[CardLike]] = None,
) -> list[DangerCard]:
    """
    Turn or river cards that could change the best hand.

    When hero holds two cards of the flush-draw suit, cards of that suit
    complete hero's flush and are not listed as dangerous.
    """
    cards = parse_cards(board)
    if not cards:
        return []

    hero = parse_cards(hero_cards) if hero_cards is not None else []
    texture = analyze_board_texture(cards)
    dangers: list[DangerCard] = []

    # Flush completing cards
    if texture.flush_draw_suit is not None:
        hero_suited = sum(1 for c in hero if c.suit == texture.flush_draw_suit)
        if hero_suited < 2:
            dangers.append(DangerCard(
                rank=14,
                suit=texture.flush_draw_suit,
                reason="Completes flush draw",
                severity="high",
            ))

    # Straight completing cards
    values = [c.rank for c in cards]
    for v in range(max(2, min(values) - 2), min(14, max(values) + 2) + 1):
        if v in values:
            continue
        if sum(1 for cv in values if abs(cv - v) <= 4) >= 3:
            dangers.append(DangerCard(
                rank=v,
                reason="Could complete straight",
                severity="medium",
            ))

    # Board pairing cards
    for rank in sorted(set(values), reverse=True):
        if not any(d.rank == rank for d in dangers):
            dangers.append(DangerCard(
                rank=rank,
                reason="Pairs the board (full house possible)",
                severity="medium",
            ))

    # Overcards
    for rank in range(14, texture.high_card, -1):
        if not any(d.rank == rank for d in dangers):
            dangers.append(DangerCard(
                rank=rank,
                reason="Overcard to board",
                severity="low",
            ))

    return dangers[:MAX_DANGER_CARDS]
