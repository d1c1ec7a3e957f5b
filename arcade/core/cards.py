"""Playing cards shared by the poker and blackjack engines."""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import StrEnum
from typing import Self


class Suit(StrEnum):
    HEARTS = "h"
    DIAMONDS = "d"
    CLUBS = "c"
    SPADES = "s"


RANK_NAMES: dict[int, str] = {
    2: "2",
    3: "3",
    4: "4",
    5: "5",
    6: "6",
    7: "7",
    8: "8",
    9: "9",
    10: "T",
    11: "J",
    12: "Q",
    13: "K",
    14: "A",
}
NAME_TO_RANK: dict[str, int] = {value: key for key, value in RANK_NAMES.items()}

ACE = 14


@dataclass(frozen=True)
class Card:
    """rank: 2-14 (11=J, 12=Q, 13=K, 14=A)"""

    rank: int
    suit: Suit

    @classmethod
    def parse(cls, text: str) -> Self:
        """Short notation: 'As' (ace of spades), 'Th' (ten of hearts), '7c' ..."""
        rank = NAME_TO_RANK[text[0].upper()]
        suit = Suit(text[1].lower())
        return cls(rank, suit)

    def __str__(self) -> str:
        return f"{RANK_NAMES[self.rank]}{self.suit.value}"


def parse_cards(text: str) -> tuple[Card, ...]:
    """Convenience: 'As Kd 7c' -> three cards"""
    return tuple(Card.parse(part) for part in text.split())


def fresh_deck(num_decks: int = 1) -> list[Card]:
    return [
        Card(rank, suit)
        for _ in range(num_decks)
        for suit in Suit
        for rank in range(2, ACE + 1)
    ]


def shuffled_deck(seed: int, num_decks: int = 1) -> tuple[Card, ...]:
    """
    Deterministic shuffle.

    Both clients of a session (and the ledger) derive the same deck from the session seed,
    so card games can be replayed from the action log alone.
    """
    deck = fresh_deck(num_decks)
    random.Random(seed).shuffle(deck)
    return tuple(deck)
