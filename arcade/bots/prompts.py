"""Prompt text sent to the suggestion service, one builder per game kind."""

from enum import StrEnum

from arcade.blackjack.game import BlackjackPosition
from arcade.chess.game import ChessPosition
from arcade.chess.pieces import Color
from arcade.poker.game import PokerPosition


class Difficulty(StrEnum):
    EASY = "easy"  # never asks the service, plays random legal moves
    MEDIUM = "medium"
    HARD = "hard"


TEMPERATURE: dict[Difficulty, float] = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 0.7,
    Difficulty.HARD: 0.2,
}

STYLE: dict[Difficulty, str] = {
    Difficulty.EASY: "Play any reasonable move.",
    Difficulty.MEDIUM: "Play a good but not perfect move.",
    Difficulty.HARD: "Play the best possible move.",
}


def chess_prompt(
    position: ChessPosition, legal_san: list[str], difficulty: Difficulty
) -> str:
    side = "White" if position.color_to_move == Color.WHITE else "Black"
    return (
        f"You are a chess AI playing as {side}.\n"
        f"Current position (FEN): {position.fen}\n"
        f"Legal moves: {', '.join(legal_san)}\n"
        f"Difficulty: {difficulty}\n"
        "\n"
        f"{STYLE[difficulty]}\n"
        "\n"
        'Respond with ONLY the move in algebraic notation (e.g., "e4", "Nf3", "O-O"). Nothing else.'
    )


def poker_prompt(position: PokerPosition, seat: int) -> str:
    opponent = 1 - seat
    board = " ".join(str(card) for card in position.board) or "None yet"
    hand = " ".join(str(card) for card in position.hole_cards(seat))
    return (
        "You are playing Texas Hold'em Poker.\n"
        f"Your hand: {hand}\n"
        f"Community cards: {board}\n"
        f"Stage: {position.street.label}\n"
        f"Pot: ${position.pot}\n"
        f"Your chips: ${position.stacks[seat]}\n"
        f"Your current bet: ${position.bets[seat]}\n"
        f"Opponent's bet: ${position.bets[opponent]}\n"
        f"Current bet to match: ${max(position.bets)}\n"
        "\n"
        "Decide your action. Options: fold, check (if no bet to call), call, raise, allin\n"
        "Consider pot odds and hand strength.\n"
        "\n"
        "Respond with ONLY one word: fold, check, call, raise, or allin"
    )


def blackjack_prompt(position: BlackjackPosition, seat: int) -> str:
    hand = " ".join(str(card) for card in position.hands[seat])
    upcard = " ".join(str(card) for card in position.dealer_visible())
    value = position.value(seat)
    return (
        "You are playing Blackjack against the dealer.\n"
        f"Your hand: {hand} (value {value.total}{', soft' if value.soft else ''})\n"
        f"Dealer shows: {upcard}\n"
        f"Your bet: ${position.bets[seat]}, chips left: ${position.chips[seat]}\n"
        "\n"
        "Respond with ONLY one word: hit, stand, or double"
    )
