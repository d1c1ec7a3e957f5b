"""Unit tests for arcade/chess/pieces.py"""

import pytest

from arcade.chess.pieces import EMPTY, Color, Piece, PieceType


@pytest.mark.parametrize(
    "character, piece_type, color",
    [
        ("P", PieceType.PAWN, Color.WHITE),
        ("n", PieceType.KNIGHT, Color.BLACK),
        ("B", PieceType.BISHOP, Color.WHITE),
        ("r", PieceType.ROOK, Color.BLACK),
        ("Q", PieceType.QUEEN, Color.WHITE),
        ("k", PieceType.KING, Color.BLACK),
    ],
)
def test_piece_fen_roundtrip(character: str, piece_type: PieceType, color: Color) -> None:
    piece = Piece.from_fen(character)
    assert piece == Piece(piece_type, color)
    assert piece.to_fen() == character


def test_empty_piece() -> None:
    assert EMPTY.is_empty
    assert EMPTY.color == Color.NONE
    assert not Piece.from_fen("K").is_empty


def test_promotion_keeps_color() -> None:
    pawn = Piece.from_fen("p")
    queen = pawn.promoted(PieceType.QUEEN)
    assert queen == Piece(PieceType.QUEEN, Color.BLACK)
    # pieces are immutable
    assert pawn.type == PieceType.PAWN


def test_color_opponent_and_seat() -> None:
    assert Color.WHITE.opponent == Color.BLACK
    assert Color.BLACK.opponent == Color.WHITE
    assert Color.NONE.opponent == Color.NONE
    assert Color.WHITE.seat == 0
    assert Color.BLACK.seat == 1
