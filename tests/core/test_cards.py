"""Unit tests for arcade/core/cards.py"""

import pytest

from arcade.core.cards import Card, Suit, fresh_deck, parse_cards, shuffled_deck


@pytest.mark.parametrize(
    "text, rank, suit",
    [("As", 14, Suit.SPADES), ("Th", 10, Suit.HEARTS), ("7c", 7, Suit.CLUBS), ("qd", 12, Suit.DIAMONDS)],
)
def test_parse(text: str, rank: int, suit: Suit) -> None:
    card = Card.parse(text)
    assert card == Card(rank, suit)
    assert str(card) == text[0].upper() + text[1].lower()


def test_parse_cards() -> None:
    assert parse_cards("As Kd 7c") == (Card(14, Suit.SPADES), Card(13, Suit.DIAMONDS), Card(7, Suit.CLUBS))


def test_decks() -> None:
    assert len(fresh_deck()) == 52
    assert len(set(fresh_deck())) == 52
    assert len(fresh_deck(6)) == 312


def test_shuffle_is_deterministic() -> None:
    assert shuffled_deck(42) == shuffled_deck(42)
    assert shuffled_deck(42) != shuffled_deck(43)
    assert sorted(shuffled_deck(42), key=str) == sorted(fresh_deck(), key=str)
