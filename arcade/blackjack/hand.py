"""Blackjack hand values."""

from dataclasses import dataclass
from typing import Iterable

from arcade.core.cards import ACE, Card

BLACKJACK = 21
DEALER_STANDS_ON = 17


@dataclass(frozen=True)
class HandValue:
    total: int
    soft: bool  # an ace still counts as 11
    natural: bool  # 21 with the first two cards
    busted: bool


def card_value(card: Card) -> int:
    """Face cards count 10, an ace 11 (reduced later when needed)."""
    if card.rank == ACE:
        return 11
    return min(card.rank, 10)


def hand_value(cards: Iterable[Card]) -> HandValue:
    """
    Aces count 11 unless that busts the hand. Then they drop to 1, one ace at a time.
    ex) A-K is a natural 21, A-6-8 is a hard 15 (not 25).
    """
    cards = list(cards)
    total = sum(card_value(card) for card in cards)
    soft_aces = sum(1 for card in cards if card.rank == ACE)
    while total > BLACKJACK and soft_aces:
        total -= 10
        soft_aces -= 1
    return HandValue(
        total=total,
        soft=soft_aces > 0,
        natural=len(cards) == 2 and total == BLACKJACK,
        busted=total > BLACKJACK,
    )


def dealer_should_draw(cards: Iterable[Card]) -> bool:
    """Dealer draws below 17 and on soft 17."""
    value = hand_value(cards)
    return value.total < DEALER_STANDS_ON or (
        value.total == DEALER_STANDS_ON and value.soft
    )


def bot_should_hit(cards: Iterable[Card], threshold: int = DEALER_STANDS_ON) -> bool:
    """The fixed heuristic bot seats play: hit below 17."""
    return hand_value(cards).total < threshold
