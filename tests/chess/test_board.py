"""Unit tests for arcade/chess/board.py"""

import pytest

from arcade.chess.board import Board
from arcade.chess.castling import CastlingDirection
from arcade.chess.fen import STARTING_FEN
from arcade.chess.moves import Move
from arcade.chess.pieces import EMPTY, Color, Piece, PieceType
from arcade.chess.square import Square
from arcade.core.exceptions import GameStateError

STARTING_POSITION = STARTING_FEN.split(" ")[0]


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def test_board_fen_roundtrip() -> None:
    board = Board.from_fen(STARTING_POSITION)
    assert board.to_fen() == STARTING_POSITION
    assert len(board.position) == 64
    assert board.piece(sq("e1")) == Piece(PieceType.KING, Color.WHITE)
    assert board.piece(sq("d8")) == Piece(PieceType.QUEEN, Color.BLACK)
    assert board.piece(sq("e4")) == EMPTY


def test_copy_is_independent() -> None:
    board = Board.from_fen(STARTING_POSITION)
    trial = board.copy()
    trial.move_piece(Move(sq("e2"), sq("e4")))
    assert board.to_fen() == STARTING_POSITION
    assert trial.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR"


def test_locate_pieces() -> None:
    board = Board.from_fen(STARTING_POSITION)
    assert set(board.locate_pieces(PieceType.ROOK, Color.BLACK)) == {sq("a8"), sq("h8")}
    assert len(board.locate_color(Color.WHITE)) == 16
    assert board.king_square(Color.BLACK) == sq("e8")


def test_king_square_missing() -> None:
    board = Board.from_fen("8/8/8/8/8/8/8/4K3")
    with pytest.raises(GameStateError):
        board.king_square(Color.BLACK)


def test_starting_position_has_20_candidate_moves() -> None:
    board = Board.from_fen(STARTING_POSITION)
    assert len(board.generate_candidate_moves(Color.WHITE)) == 20
    assert len(board.generate_candidate_moves(Color.BLACK)) == 20


def test_is_check() -> None:
    # black rook on the e-file, nothing in between
    board = Board.from_fen("4r1k1/8/8/8/8/8/8/4K3")
    assert board.is_check(Color.WHITE)
    assert not board.is_check(Color.BLACK)

    # a blocker lifts the check
    blocked = Board.from_fen("4r1k1/8/8/8/4P3/8/8/4K3")
    assert not blocked.is_check(Color.WHITE)


def test_castle_moves_king_and_rook() -> None:
    board = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R")
    board.move_piece(
        Move(sq("e1"), sq("g1"), castling_direction=CastlingDirection.WHITE_KING_SIDE)
    )
    assert board.piece(sq("g1")).type == PieceType.KING
    assert board.piece(sq("f1")).type == PieceType.ROOK
    assert board.piece(sq("h1")) == EMPTY
    assert board.piece(sq("e1")) == EMPTY

    board.move_piece(
        Move(sq("e8"), sq("c8"), castling_direction=CastlingDirection.BLACK_QUEEN_SIDE)
    )
    assert board.to_fen() == "2kr3r/8/8/8/8/8/8/R4RK1"


def test_en_passant_removes_the_passed_pawn() -> None:
    board = Board.from_fen("4k3/8/8/3pP3/8/8/8/4K3")
    board.move_piece(Move(sq("e5"), sq("d6"), is_en_passant=True))
    assert board.piece(sq("d6")) == Piece(PieceType.PAWN, Color.WHITE)
    assert board.piece(sq("d5")) == EMPTY


def test_promotion() -> None:
    board = Board.from_fen("4k3/P7/8/8/8/8/8/4K3")
    board.move_piece(Move(sq("a7"), sq("a8"), promote_to=PieceType.KNIGHT))
    assert board.piece(sq("a8")) == Piece(PieceType.KNIGHT, Color.WHITE)


@pytest.mark.parametrize(
    "position, insufficient",
    [
        ("4k3/8/8/8/8/8/8/4K3", True),  # K v K
        ("4k3/8/8/8/8/8/8/4KB2", True),  # K+B v K
        ("4k3/8/8/8/8/8/8/4KN2", True),  # K+N v K
        ("4k3/8/8/8/8/4B3/8/2B1K3", True),  # bishops on c1 and e3, same square color
        ("4k3/8/8/8/8/8/8/2B1KB2", False),  # bishops on c1 and f1
        ("4k3/8/8/8/8/8/8/4KP2", False),  # pawn
        ("4k3/8/8/8/8/8/8/3NKN2", False),  # two knights
        ("4k3/8/8/8/8/8/8/4KR2", False),  # rook
    ],
)
def test_insufficient_material(position: str, insufficient: bool) -> None:
    assert Board.from_fen(position).is_insufficient_material() == insufficient
