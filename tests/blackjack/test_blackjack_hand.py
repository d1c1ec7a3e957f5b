"""Unit tests for arcade/blackjack/hand.py"""

import pytest

from arcade.blackjack.hand import bot_should_hit, dealer_should_draw, hand_value
from arcade.core.cards import parse_cards


@pytest.mark.parametrize(
    "cards, total, soft, natural, busted",
    [
        ("Ah Kd", 21, True, True, False),
        ("Ah 6c 8d", 15, False, False, False),
        ("Ah Ad", 12, True, False, False),
        ("Ah Ad 9c", 21, True, False, False),
        ("Tc 5d 7h", 22, False, False, True),
        ("Jc Qd", 20, False, False, False),
        ("7c 7d 7h", 21, False, False, False),
    ],
)
def test_hand_value(cards: str, total: int, soft: bool, natural: bool, busted: bool) -> None:
    value = hand_value(parse_cards(cards))
    assert (value.total, value.soft, value.natural, value.busted) == (total, soft, natural, busted)


@pytest.mark.parametrize(
    "cards, draws",
    [("Tc 6d", True), ("Ah 6d", True), ("Tc 7d", False), ("Ah 7d", False), ("Tc 6d Ah", False)],
)
def test_dealer_draws_below_17_and_on_soft_17(cards: str, draws: bool) -> None:
    assert dealer_should_draw(parse_cards(cards)) == draws


def test_bot_heuristic() -> None:
    assert bot_should_hit(parse_cards("Tc 6d"))
    assert not bot_should_hit(parse_cards("Tc 7d"))
    assert not bot_should_hit(parse_cards("Tc 4d"), threshold=14)
