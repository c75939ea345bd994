"""Hand range notation, combo expansion and preset ranges."""

from dataclasses import dataclass
from typing import Iterable, Optional

from felt.errors import InvalidInputError
from .cards import Card, Hand, RANK_STR, parse_rank

# hand notation -> weight (0-1)
HandRange = dict[str, float]

RANKS = "AKQJT98765432"

# Total two-card combinations from a 52-card deck
TOTAL_COMBOS = 1326


def normalize_hand(notation: str) -> str:
    """
    Normalize hand notation to canonical form.

    Examples:
        "AKs" -> "AKs"
        "kas" -> "AKs"
        "AsKs" -> "AKs"
        "Kd Ah" -> "AKo"
        "TT" -> "TT"
    """
    cleaned = "".join(notation.split())

    if len(cleaned) == 4:
        return Hand.from_cards(cleaned).canonical

    if len(cleaned) == 2:
        r1 = parse_rank(cleaned[0])
        r2 = parse_rank(cleaned[1])
        if r1 != r2:
            raise InvalidInputError(
                f"Hand {notation!r} needs an 's' or 'o' suffix"
            )
        return f"{RANK_STR[r1]}{RANK_STR[r2]}"

    if len(cleaned) == 3:
        r1 = parse_rank(cleaned[0])
        r2 = parse_rank(cleaned[1])
        kind = cleaned[2].lower()
        if r1 == r2 or kind not in ("s", "o"):
            raise InvalidInputError(f"Invalid hand notation: {notation!r}")
        high, low = max(r1, r2), min(r1, r2)
        return f"{RANK_STR[high]}{RANK_STR[low]}{kind}"

    raise InvalidInputError(f"Invalid hand notation: {notation!r}")


def combo_count(notation: str) -> int:
    """Number of unblocked combos: 6 for pairs, 4 suited, 12 offsuit."""
    hand = normalize_hand(notation)
    if len(hand) == 2:
        return 6
    return 4 if hand[2] == "s" else 12


def expand_hand(
    notation: str,
    blockers: Iterable[Card] = (),
) -> list[tuple[Card, Card]]:
    """
    Expand hand notation into concrete two-card combos.

    Combos containing any blocker card are excluded.
    """
    hand = normalize_hand(notation)
    blocked = set(blockers)
    r1 = parse_rank(hand[0])
    r2 = parse_rank(hand[1])

    combos = []
    if r1 == r2:
        for s1 in range(4):
            for s2 in range(s1 + 1, 4):
                combos.append((Card(r1, s1), Card(r2, s2)))
    elif hand[2] == "s":
        for s in range(4):
            combos.append((Card(r1, s), Card(r2, s)))
    else:
        for s1 in range(4):
            for s2 in range(4):
                if s1 != s2:
                    combos.append((Card(r1, s1), Card(r2, s2)))

    return [
        (c1, c2) for c1, c2 in combos
        if c1 not in blocked and c2 not in blocked
    ]


def get_all_hands() -> list[str]:
    """Generate all 169 unique starting hands in canonical form."""
    hands = []

    # Pairs
    for r in RANKS:
        hands.append(f"{r}{r}")

    # Non-pairs
    for i, r1 in enumerate(RANKS):
        for r2 in RANKS[i+1:]:
            hands.append(f"{r1}{r2}s")  # Suited
            hands.append(f"{r1}{r2}o")  # Offsuit

    return hands


def parse_range(range_str: str) -> list[str]:
    """
    Parse a hand range token into list of hands.

    Examples:
        "AA" -> ["AA"]
        "AKs" -> ["AKs"]
        "TT+" -> ["TT", "JJ", "QQ", "KK", "AA"]
        "ATs+" -> ["ATs", "AJs", "AQs", "AKs"]
        "22-55" -> ["22", "33", "44", "55"]
    """
    hands = []
    range_str = range_str.strip()

    # Pair plus: "TT+"
    if len(range_str) == 3 and range_str[2] == "+" and range_str[0] == range_str[1]:
        start_rank = parse_rank(range_str[0])
        for rank in range(start_rank, 15):
            hands.append(f"{RANK_STR[rank]}{RANK_STR[rank]}")
        return hands

    # Pair range: "22-55"
    if "-" in range_str:
        if len(range_str) != 5 or range_str[2] != "-":
            raise InvalidInputError(f"Invalid range token: {range_str!r}")
        low = parse_rank(range_str[0])
        high = parse_rank(range_str[3])
        if parse_rank(range_str[1]) != low or parse_rank(range_str[4]) != high:
            raise InvalidInputError(f"Only pair ranges are supported: {range_str!r}")
        if low > high:
            low, high = high, low
        for rank in range(low, high + 1):
            hands.append(f"{RANK_STR[rank]}{RANK_STR[rank]}")
        return hands

    # Suited/offsuit plus: "ATs+"
    if len(range_str) == 4 and range_str[3] == "+":
        high_rank = parse_rank(range_str[0])
        low_rank = parse_rank(range_str[1])
        if range_str[2].lower() not in ("s", "o") or low_rank >= high_rank:
            raise InvalidInputError(f"Invalid range token: {range_str!r}")

        suffix = range_str[2].lower()
        for rank in range(low_rank, high_rank):
            hands.append(f"{RANK_STR[high_rank]}{RANK_STR[rank]}{suffix}")
        return hands

    # Single hand
    return [normalize_hand(range_str)]


def parse_range_string(range_str: str) -> HandRange:
    """
    Parse a comma separated range into a HandRange.

    Examples:
        "AA,KK,QQ" - specific hands at 100%
        "AKs:0.5,AQs:0.75" - hands with weights
        "TT+,ATs+" - range shorthands
    """
    hand_range: HandRange = {}
    for part in range_str.split(","):
        part = part.strip()
        if not part:
            continue

        if ":" in part:
            token, weight_str = part.split(":", 1)
            try:
                weight = float(weight_str)
            except ValueError:
                raise InvalidInputError(f"Invalid weight in {part!r}") from None
        else:
            token = part
            weight = 1.0

        if not 0.0 <= weight <= 1.0:
            raise InvalidInputError(f"Weight must be in [0, 1]: {part!r}")

        for hand in parse_range(token):
            hand_range[hand] = weight

    return hand_range


def normalize_range(hand_range: HandRange) -> HandRange:
    """Return a copy with canonical notation keys and validated weights."""
    normalized: HandRange = {}
    for notation, weight in hand_range.items():
        if not 0.0 <= weight <= 1.0:
            raise InvalidInputError(f"Weight for {notation} must be in [0, 1]")
        normalized[normalize_hand(notation)] = weight
    return normalized


def range_combos(hand_range: HandRange) -> float:
    """Weighted number of combos in a range (ignoring blockers)."""
    return sum(
        combo_count(hand) * weight
        for hand, weight in hand_range.items()
        if weight > 0
    )


def range_percentage(hand_range: HandRange) -> float:
    """Share of all 1326 starting combos covered by a range, in percent."""
    return range_combos(hand_range) / TOTAL_COMBOS * 100


def is_hand_in_range(hand: str, hand_range: HandRange) -> tuple[bool, float]:
    """Check whether a hand ('AsKs', 'AKs', ...) is in a range, and at what weight."""
    weight = hand_range.get(normalize_hand(hand), 0.0)
    return weight > 0, weight


@dataclass
class PresetRange:
    """A stored range for a common preflop situation."""
    key: str
    position: str
    action: str
    description: str
    notation: str
    stack_depth: int = 100

    @property
    def hand_range(self) -> HandRange:
        return parse_range_string(self.notation)


PRESET_RANGES = [
    PresetRange(
        key="UTG_open_100bb",
        position="UTG",
        action="open",
        description="UTG opening range (~12% of hands)",
        notation=(
            "99+,88:0.5,77:0.25,AJs+,ATs:0.75,KQs,KJs:0.5,KTs:0.25,"
            "QJs:0.5,QTs:0.25,JTs:0.25,AKo,AQo:0.75,AJo:0.25,KQo:0.25"
        ),
    ),
    PresetRange(
        key="BTN_open_100bb",
        position="BTN",
        action="open",
        description="BTN opening range (~45% of hands)",
        notation=(
            "22+,A2s+,K9s+,K8s:0.75,K7s:0.5,K6s:0.5,K5s:0.5,K4s:0.25,"
            "Q9s+,Q8s:0.75,Q7s:0.5,Q6s:0.25,J9s+,J8s:0.75,J7s:0.5,"
            "T9s,T8s:0.75,98s,97s:0.5,87s,86s:0.5,76s,75s:0.5,65s,64s:0.25,"
            "54s,53s:0.25,43s:0.5,ATo+,A9o:0.75,A8o:0.5,A7o:0.5,A6o:0.25,"
            "A5o:0.5,A4o:0.25,A3o:0.25,A2o:0.25,KTo+,K9o:0.5,K8o:0.25,"
            "QJo,QTo:0.75,Q9o:0.25,JTo,J9o:0.5,T9o:0.5"
        ),
    ),
    PresetRange(
        key="BB_3bet_vs_BTN",
        position="BB",
        action="3bet_vs_BTN",
        description="BB 3-bet range vs BTN open",
        notation=(
            "JJ+,TT:0.75,99:0.25,AQs+,AKo,AQo:0.75,AJs:0.5,KQs:0.5,"
            "A5s,A4s,A3s:0.75,A2s:0.5,K9s:0.25,K8s:0.25,Q9s:0.25,J9s:0.25,"
            "T9s:0.25,87s:0.25,76s:0.25,65s:0.25,54s:0.25"
        ),
    ),
    PresetRange(
        key="BB_call_vs_BTN",
        position="BB",
        action="call_vs_BTN",
        description="BB calling range vs BTN open",
        notation=(
            "22-88,99:0.75,A9s,A8s,A7s,A6s,A5s:0.5,A4s:0.5,A3s:0.5,A2s:0.5,"
            "KJs,KTs,K9s,K8s,K7s:0.75,K6s:0.5,K5s:0.5,K4s:0.25,"
            "QTs,Q9s,Q8s:0.75,Q7s:0.5,Q6s:0.25,JTs,J9s,J8s:0.5,T9s,T8s:0.75,"
            "98s,97s:0.5,87s,86s:0.5,76s,75s:0.25,65s,54s,43s:0.5,"
            "ATo,A9o:0.75,A8o:0.5,A7o:0.25,A6o:0.25,A5o:0.25,KTo:0.75,"
            "K9o:0.5,QJo:0.5,QTo:0.25,JTo:0.5,J9o:0.25,T9o:0.25"
        ),
    ),
]


def get_range(key: str) -> Optional[HandRange]:
    """Get a preset range by situation key, e.g. 'BTN_open_100bb'."""
    for preset in PRESET_RANGES:
        if preset.key == key:
            return preset.hand_range
    return None
