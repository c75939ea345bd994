"""Card, hand and deck representation."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Union

import numpy as np
from treys import Card as TreysCard

from felt.errors import DeckExhaustedError, InvalidInputError


class Rank(IntEnum):
    """Card ranks (2-14 where 14 is Ace)."""
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14


class Suit(IntEnum):
    """Card suits."""
    CLUBS = 0
    DIAMONDS = 1
    HEARTS = 2
    SPADES = 3


# Mapping for string conversion
RANK_STR = {
    2: "2", 3: "3", 4: "4", 5: "5", 6: "6", 7: "7", 8: "8", 9: "9",
    10: "T", 11: "J", 12: "Q", 13: "K", 14: "A"
}
STR_RANK = {v: k for k, v in RANK_STR.items()}

SUIT_STR = {0: "c", 1: "d", 2: "h", 3: "s"}
STR_SUIT = {v: k for k, v in SUIT_STR.items()}

SUIT_NAMES = {0: "clubs", 1: "diamonds", 2: "hearts", 3: "spades"}


def parse_rank(char: str) -> Rank:
    """Parse a single rank character. '1' is accepted as a ten."""
    rank_char = char.upper()
    if rank_char == "1":
        rank_char = "T"
    if rank_char not in STR_RANK:
        raise InvalidInputError(f"Invalid rank: {char}")
    return Rank(STR_RANK[rank_char])


@dataclass(frozen=True)
class Card:
    """A playing card."""
    rank: int  # 2-14
    suit: int  # 0-3

    def __str__(self) -> str:
        return f"{RANK_STR[self.rank]}{SUIT_STR[self.suit]}"

    def __repr__(self) -> str:
        return str(self)

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Parse card from string like 'As', 'Th', '2c' (or '1h' for a ten)."""
        s = s.strip()
        if len(s) != 2:
            raise InvalidInputError(f"Invalid card string: {s!r}")
        suit_char = s[1].lower()
        if suit_char not in STR_SUIT:
            raise InvalidInputError(f"Invalid suit: {s[1]}")

        return cls(rank=parse_rank(s[0]), suit=Suit(STR_SUIT[suit_char]))

    def to_treys(self) -> int:
        """Convert to treys library card format."""
        return TreysCard.new(str(self))


CardLike = Union[Card, str]


def parse_cards(cards: Union[str, Iterable[CardLike]]) -> list[Card]:
    """
    Parse cards from notation.

    Accepts a packed string ('AsKh', 'As Kh Td') or an iterable of
    Card objects and/or two-character strings.
    """
    if isinstance(cards, str):
        cleaned = "".join(cards.split())
        if len(cleaned) % 2 != 0:
            raise InvalidInputError(f"Invalid card notation: {cards!r}")
        return [Card.from_string(cleaned[i:i + 2]) for i in range(0, len(cleaned), 2)]

    parsed = []
    for card in cards:
        if isinstance(card, Card):
            parsed.append(card)
        elif isinstance(card, str):
            parsed.append(Card.from_string(card))
        else:
            raise InvalidInputError(f"Not a card: {card!r}")
    return parsed


def ensure_unique(cards: Iterable[Card]) -> None:
    """Raise InvalidInputError if any card appears more than once."""
    seen = set()
    for card in cards:
        if card in seen:
            raise InvalidInputError(f"Duplicate card: {card}")
        seen.add(card)


def cards_to_string(cards: Iterable[Card]) -> str:
    """Compact notation, e.g. 'Kh7s2c'."""
    return "".join(str(c) for c in cards)


def board_to_string(cards: Iterable[Card]) -> str:
    """Order-independent board notation, highest rank (then suit) first."""
    return cards_to_string(sorted(cards, key=lambda c: (c.rank, c.suit), reverse=True))


@dataclass
class Hand:
    """A two-card starting hand."""
    card1: Card
    card2: Card

    def __post_init__(self):
        if self.card1 == self.card2:
            raise InvalidInputError(f"Duplicate card in hand: {self.card1}")
        # Ensure card1 has higher or equal rank
        if (self.card1.rank, self.card1.suit) < (self.card2.rank, self.card2.suit):
            self.card1, self.card2 = self.card2, self.card1

    @property
    def cards(self) -> list[Card]:
        return [self.card1, self.card2]

    @property
    def is_pair(self) -> bool:
        """Check if hand is a pocket pair."""
        return self.card1.rank == self.card2.rank

    @property
    def is_suited(self) -> bool:
        """Check if hand is suited."""
        return self.card1.suit == self.card2.suit

    @property
    def canonical(self) -> str:
        """
        Get canonical hand notation (e.g., 'AKs', 'QQ', '72o').

        This groups equivalent hands regardless of specific suits.
        """
        r1 = RANK_STR[self.card1.rank]
        r2 = RANK_STR[self.card2.rank]

        if self.is_pair:
            return f"{r1}{r2}"
        elif self.is_suited:
            return f"{r1}{r2}s"
        else:
            return f"{r1}{r2}o"

    def __str__(self) -> str:
        return f"{self.card1}{self.card2}"

    def __repr__(self) -> str:
        return f"Hand({self.card1}, {self.card2})"

    @classmethod
    def from_cards(cls, cards: Iterable[CardLike]) -> "Hand":
        parsed = parse_cards(cards)
        if len(parsed) != 2:
            raise InvalidInputError(f"A hand needs exactly 2 cards, got {len(parsed)}")
        return cls(parsed[0], parsed[1])

    @classmethod
    def from_string(cls, s: str) -> "Hand":
        """Parse hand from string like 'AsKh' or 'AKs'."""
        s = "".join(s.split())
        if len(s) == 4:
            # Specific cards: 'AsKh'
            return cls.from_cards(s)
        elif len(s) == 2:
            # Pair: 'AA'
            rank = parse_rank(s[0])
            if parse_rank(s[1]) != rank:
                raise InvalidInputError(f"Invalid hand string: {s}")
            return cls(
                Card(rank, Suit.SPADES),
                Card(rank, Suit.HEARTS)
            )
        elif len(s) == 3:
            # Suited or offsuit: 'AKs' or 'AKo'
            r1 = parse_rank(s[0])
            r2 = parse_rank(s[1])
            kind = s[2].lower()
            if r1 == r2 or kind not in ("s", "o"):
                raise InvalidInputError(f"Invalid hand string: {s}")

            if kind == "s":
                return cls(Card(r1, Suit.SPADES), Card(r2, Suit.SPADES))
            else:
                return cls(Card(r1, Suit.SPADES), Card(r2, Suit.HEARTS))
        else:
            raise InvalidInputError(f"Invalid hand string: {s}")

    def to_treys(self) -> list[int]:
        """Convert to treys library format."""
        return [self.card1.to_treys(), self.card2.to_treys()]


def full_deck() -> list[Card]:
    """All 52 cards, ordered by rank then suit."""
    return [
        Card(rank, suit)
        for rank in Rank
        for suit in Suit
    ]


class Deck:
    """
    A standard 52-card deck.

    Randomness comes from an injected numpy Generator so simulations can
    be made reproducible; without one a fresh unseeded generator is used.
    """

    def __init__(
        self,
        known: Iterable[Card] = (),
        rng: Optional[np.random.Generator] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.cards: list[Card] = []
        self.reset()
        self.remove(known)

    def reset(self) -> None:
        """Reset deck to full 52 cards."""
        self.cards = full_deck()

    def deal(self, n: int = 1) -> list[Card]:
        """Deal n cards from the deck."""
        if n > len(self.cards):
            raise DeckExhaustedError(n, len(self.cards))
        dealt = self.cards[:n]
        self.cards = self.cards[n:]
        return dealt

    def sample_indices(self, n: int, trials: int) -> np.ndarray:
        """
        Draw `trials` independent n-card deals without touching the deck.

        Returns:
            (trials, n) array of indices into `cards`
        """
        if n > len(self.cards):
            raise DeckExhaustedError(n, len(self.cards))
        order = np.tile(np.arange(len(self.cards)), (trials, 1))
        return self.rng.permuted(order, axis=1)[:, :n]

    def remove(self, cards: Iterable[Card]) -> None:
        """Remove specific cards from the deck."""
        removed = set(cards)
        self.cards = [c for c in self.cards if c not in removed]

    def __contains__(self, card: Card) -> bool:
        return card in self.cards

    def __len__(self) -> int:
        return len(self.cards)
