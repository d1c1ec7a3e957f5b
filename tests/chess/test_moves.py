"""Unit tests for arcade/chess/moves.py"""

import pytest

from arcade.chess.board import Board
from arcade.chess.moves import (
    Move,
    candidate_bishop_moves,
    candidate_king_moves,
    candidate_knight_moves,
    candidate_pawn_moves,
    candidate_queen_moves,
    candidate_rook_moves,
    en_passant_moves,
    is_pawn_push_to_promotion_square,
    is_square_attacked,
    pawn_pushes_w_promotion,
)
from arcade.chess.pieces import Color, PieceType
from arcade.chess.square import Square
from arcade.core.exceptions import IllegalMoveError


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def targets(moves: list[Move]) -> set[str]:
    return {move.to_square.to_algebraic() for move in moves}


# --- UCI ---
@pytest.mark.parametrize(
    "uci, expected",
    [
        ("e2e4", Move(Square(5, 2), Square(5, 4))),
        ("e7e8q", Move(Square(5, 7), Square(5, 8), promote_to=PieceType.QUEEN)),
        ("A7A8N", Move(Square(1, 7), Square(1, 8), promote_to=PieceType.KNIGHT)),
    ],
)
def test_from_uci(uci: str, expected: Move) -> None:
    assert Move.from_uci(uci) == expected
    assert Move.from_uci(uci).to_uci() == uci.lower()


@pytest.mark.parametrize("uci", ["", "e2", "e2e4e5", "e2e9", "i2i4", "e7e8x", "ee22"])
def test_from_uci_rejects_garbage(uci: str) -> None:
    with pytest.raises(IllegalMoveError):
        Move.from_uci(uci)


# --- MOVEMENT ---
def test_knight_in_the_corner() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/8/N3K3")
    assert targets(candidate_knight_moves(sq("a1"), board)) == {"b3", "c2"}


def test_rook_stops_at_first_piece() -> None:
    """Own piece blocks, opponent's piece can be captured."""
    board = Board.from_fen("4k3/8/8/3p4/8/8/3P4/3RK3")
    moves = targets(candidate_rook_moves(sq("d1"), board))
    assert moves == {"a1", "b1", "c1"}

    board = Board.from_fen("4k3/8/8/3p4/8/8/8/3RK3")
    moves = targets(candidate_rook_moves(sq("d1"), board))
    assert moves == {"a1", "b1", "c1", "d2", "d3", "d4", "d5"}


def test_bishop_and_queen() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/8/2B1K3")
    assert targets(candidate_bishop_moves(sq("c1"), board)) == {"b2", "a3", "d2", "e3", "f4", "g5", "h6"}

    board = Board.from_fen("4k3/8/8/8/8/8/8/3QK3")
    queen = targets(candidate_queen_moves(sq("d1"), board))
    assert len(queen) == 3 + 7 + 3 + 4
    assert "h5" in queen and "d8" in queen and "e1" not in queen


def test_king_steps() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/3p4/4K3")
    assert targets(candidate_king_moves(sq("e1"), board)) == {"d1", "f1", "d2", "e2", "f2"}


def test_pawn_pushes() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/4P3/4K3")
    assert targets(candidate_pawn_moves(sq("e2"), board)) == {"e3", "e4"}

    # no double step from a later rank
    board = Board.from_fen("4k3/8/8/8/8/4P3/8/4K3")
    assert targets(candidate_pawn_moves(sq("e3"), board)) == {"e4"}

    # blocked pawns cannot jump, and do not capture straight ahead
    board = Board.from_fen("4k3/8/8/8/8/4n3/4P3/4K3")
    assert targets(candidate_pawn_moves(sq("e2"), board)) == set()


def test_pawn_captures_diagonally() -> None:
    board = Board.from_fen("4k3/8/8/3p1n2/4P3/8/8/4K3")
    assert targets(candidate_pawn_moves(sq("e4"), board)) == {"e5", "d5", "f5"}

    black = Board.from_fen("4k3/8/8/3p4/2P1P3/8/8/4K3")
    assert targets(candidate_pawn_moves(sq("d5"), black)) == {"d4", "c4", "e4"}


# --- ATTACKS ---
@pytest.mark.parametrize(
    "position, square, by_color, attacked",
    [
        ("4k3/8/8/8/8/8/3p4/4K3", "e1", Color.BLACK, True),  # pawn
        ("4k3/8/8/8/8/3n4/8/4K3", "e1", Color.BLACK, True),  # knight
        ("4k3/8/8/b7/8/8/8/4K3", "e1", Color.BLACK, True),  # bishop on the diagonal
        ("4k3/8/8/b7/8/8/3P4/4K3", "e1", Color.BLACK, False),  # ... blocked
        ("4k3/8/8/8/8/8/8/r3K3", "e1", Color.BLACK, True),  # rook on the rank
        ("4k3/8/8/8/8/8/4p3/4K3", "e1", Color.BLACK, False),  # pawns do not attack straight
        ("8/8/8/8/8/8/3k4/4K3", "e1", Color.BLACK, True),  # king
    ],
)
def test_is_square_attacked(position: str, square: str, by_color: Color, attacked: bool) -> None:
    assert is_square_attacked(sq(square), by_color, Board.from_fen(position)) == attacked


# --- SPECIAL MOVES ---
def test_en_passant_moves() -> None:
    """White pawns on d5 and f5 can both take the e-pawn that just skipped e6."""
    board = Board.from_fen("4k3/8/8/3PpP2/8/8/8/4K3")
    moves = en_passant_moves(sq("e6"), Color.WHITE, board)
    assert {move.from_square.to_algebraic() for move in moves} == {"d5", "f5"}
    assert all(move.is_en_passant for move in moves)


def test_promotion_options() -> None:
    board = Board.from_fen("4k3/P7/8/8/8/8/8/4K3")
    push = Move(sq("a7"), sq("a8"))
    assert is_pawn_push_to_promotion_square(push, board)
    assert not is_pawn_push_to_promotion_square(Move(sq("e1"), sq("e2")), board)
    assert [move.to_uci() for move in pawn_pushes_w_promotion(push)] == [
        "a7a8q",
        "a7a8r",
        "a7a8b",
        "a7a8n",
    ]
