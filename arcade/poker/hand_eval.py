"""
Poker hand evaluation.

A hand is scored as (category, tiebreak). Scores compare as plain tuples, so the
better hand is simply the larger score, and equal scores split the pot.
"""

from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from itertools import combinations
from typing import Iterable

from arcade.core.cards import ACE, Card
from arcade.core.exceptions import GameStateError

HAND_SIZE = 5
WHEEL = (ACE, 5, 4, 3, 2)


class HandCategory(IntEnum):
    HIGH_CARD = 0
    ONE_PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").lower()


@dataclass(frozen=True, order=True)
class HandScore:
    category: HandCategory
    tiebreak: tuple[int, ...]

    def __str__(self) -> str:
        return self.category.label


def _straight_high(ranks: list[int]) -> int | None:
    """High card of the straight, or None. The wheel (A-2-3-4-5) is a 5-high straight."""
    unique = sorted(set(ranks), reverse=True)
    if len(unique) != HAND_SIZE:
        return None
    if unique[0] - unique[-1] == HAND_SIZE - 1:
        return unique[0]
    if tuple(unique) == WHEEL:
        return 5
    return None


def evaluate_five(cards: Iterable[Card]) -> HandScore:
    cards = list(cards)
    if len(cards) != HAND_SIZE:
        raise GameStateError(f"Need exactly {HAND_SIZE} cards, got {len(cards)}.")

    ranks = sorted((card.rank for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    straight_high = _straight_high(ranks)

    if is_flush and straight_high is not None:
        return HandScore(HandCategory.STRAIGHT_FLUSH, (straight_high,))

    # ranks grouped by multiplicity first, then by rank: [(rank, count), ...]
    groups = sorted(Counter(ranks).items(), key=lambda item: (item[1], item[0]), reverse=True)
    counts = [count for _, count in groups]
    ordered = tuple(rank for rank, _ in groups)

    if counts[0] == 4:
        return HandScore(HandCategory.FOUR_OF_A_KIND, ordered)
    if counts[:2] == [3, 2]:
        return HandScore(HandCategory.FULL_HOUSE, ordered)
    if is_flush:
        return HandScore(HandCategory.FLUSH, tuple(ranks))
    if straight_high is not None:
        return HandScore(HandCategory.STRAIGHT, (straight_high,))
    if counts[0] == 3:
        return HandScore(HandCategory.THREE_OF_A_KIND, ordered)
    if counts[:2] == [2, 2]:
        return HandScore(HandCategory.TWO_PAIR, ordered)
    if counts[0] == 2:
        return HandScore(HandCategory.ONE_PAIR, ordered)
    return HandScore(HandCategory.HIGH_CARD, tuple(ranks))


def evaluate_best(cards: Iterable[Card]) -> HandScore:
    """Best 5-card score out of 5..7 cards (hole cards + board)."""
    cards = list(cards)
    if len(cards) < HAND_SIZE:
        raise GameStateError(f"Need at least {HAND_SIZE} cards, got {len(cards)}.")
    return max(evaluate_five(combo) for combo in combinations(cards, HAND_SIZE))


def compare_hands(first: Iterable[Card], second: Iterable[Card]) -> int:
    """1 if the first hand wins, -1 if the second one does, 0 for a split."""
    first_score, second_score = evaluate_best(first), evaluate_best(second)
    return (first_score > second_score) - (first_score < second_score)
