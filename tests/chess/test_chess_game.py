"""Unit tests for arcade/chess/game.py"""

import pytest

from arcade.chess.fen import STARTING_FEN
from arcade.chess.game import ChessEngine, ChessPosition, seat_color
from arcade.chess.pieces import Color, Piece, PieceType
from arcade.chess.square import Square
from arcade.core.exceptions import IllegalMoveError
from arcade.core.shared_types import TerminalKind

engine = ChessEngine()


def play(position: ChessPosition, *moves: str) -> ChessPosition:
    for move in moves:
        position = engine.apply(position, move)
    return position


def test_new_game() -> None:
    position = engine.new_position(seed=123)
    assert position.fen == STARTING_FEN
    assert len(engine.legal_actions(position)) == 20
    assert engine.to_move(position) == 0
    assert engine.move_count(position) == 0
    assert not engine.terminal(position).is_over


def test_move_changes_side() -> None:
    position = play(engine.new_position(), "e2e4")
    assert position.color_to_move == Color.BLACK
    assert engine.to_move(position) == 1
    assert engine.move_count(position) == 1
    assert position.fen == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_apply_does_not_touch_the_input() -> None:
    start = engine.new_position()
    after = engine.apply(start, "e2e4")
    assert start.fen == STARTING_FEN
    assert start.moves == ()
    assert after.moves == ("e2e4",)


@pytest.mark.parametrize("move", ["e2e5", "e7e5", "e1e2", "a1a3", "garbage"])
def test_illegal_moves(move: str) -> None:
    with pytest.raises(IllegalMoveError):
        engine.apply(engine.new_position(), move)


def test_legal_destinations() -> None:
    position = engine.new_position()
    assert engine.legal_destinations(position, "g1") == {"f3", "h3"}
    assert engine.legal_destinations(position, "e2") == {"e3", "e4"}
    # not the mover's piece
    assert engine.legal_destinations(position, "e7") == set()


# --- CASTLING ---
def test_castling_both_sides() -> None:
    position = engine.new_position("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    assert {"e1g1", "e1c1"} <= set(engine.legal_actions(position))

    castled = engine.apply(position, "e1g1")
    assert castled.board.piece(Square.from_algebraic("g1")) == Piece(PieceType.KING, Color.WHITE)
    assert castled.board.piece(Square.from_algebraic("f1")) == Piece(PieceType.ROOK, Color.WHITE)
    assert castled.state.to_fen().split(" ")[2] == "kq"


def test_no_castling_through_an_attacked_square() -> None:
    # black rook on f8 covers f1
    position = engine.new_position("r3kr2/8/8/8/8/8/8/R3K2R w KQq - 0 1")
    actions = engine.legal_actions(position)
    assert "e1g1" not in actions
    assert "e1c1" in actions


def test_no_castling_out_of_check() -> None:
    position = engine.new_position("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    position = play(position, "a8a1")
    assert engine.is_check(position)
    assert "e1g1" not in engine.legal_actions(position)


def test_rook_move_revokes_castling() -> None:
    position = engine.new_position("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    position = play(position, "h1h2", "a8a7", "h2h1", "a7a8")
    assert position.state.to_fen().split(" ")[2] == "Qk"
    actions = engine.legal_actions(position)
    assert "e1g1" not in actions
    assert "e1c1" in actions


# --- EN PASSANT ---
def test_en_passant_right_after_the_double_step() -> None:
    position = play(engine.new_position(), "e2e4", "a7a6", "e4e5", "d7d5")
    assert "e5d6" in engine.legal_actions(position)

    taken = engine.apply(position, "e5d6")
    assert taken.board.piece(Square.from_algebraic("d5")).is_empty
    assert taken.board.piece(Square.from_algebraic("d6")) == Piece(PieceType.PAWN, Color.WHITE)


def test_en_passant_expires_after_one_ply() -> None:
    position = play(engine.new_position(), "e2e4", "a7a6", "e4e5", "d7d5", "g1f3", "a6a5")
    assert "e5d6" not in engine.legal_actions(position)


# --- PROMOTION ---
def test_promotion_defaults_to_queen() -> None:
    position = engine.new_position("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
    promoted = engine.apply(position, "a7a8")
    assert promoted.moves == ("a7a8q",)
    assert promoted.board.piece(Square.from_algebraic("a8")) == Piece(PieceType.QUEEN, Color.WHITE)


def test_under_promotion() -> None:
    position = engine.new_position("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
    assert {"a7a8q", "a7a8r", "a7a8b", "a7a8n"} <= set(engine.legal_actions(position))
    promoted = engine.apply(position, "a7a8n")
    assert promoted.board.piece(Square.from_algebraic("a8")) == Piece(PieceType.KNIGHT, Color.WHITE)


# --- TERMINALS ---
def test_fools_mate() -> None:
    position = play(engine.new_position(), "f2f3", "e7e5", "g2g4", "d8h4")
    terminal = engine.terminal(position)
    assert terminal.kind == TerminalKind.CHECKMATE
    assert terminal.winner == 1
    assert engine.legal_actions(position) == []
    assert engine.to_move(position) is None
    with pytest.raises(IllegalMoveError):
        engine.apply(position, "a2a3")


def test_stalemate() -> None:
    position = engine.new_position("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    terminal = engine.terminal(position)
    assert terminal.kind == TerminalKind.STALEMATE
    assert terminal.winner is None


def test_threefold_repetition() -> None:
    shuffle = ("g1f3", "g8f6", "f3g1", "f6g8")
    position = play(engine.new_position(), *shuffle)
    assert not engine.terminal(position).is_over

    position = play(position, *shuffle[:3])
    assert not engine.terminal(position).is_over

    position = play(position, shuffle[3])
    terminal = engine.terminal(position)
    assert terminal.kind == TerminalKind.DRAW
    assert terminal.reason == "threefold repetition"


def test_fifty_move_rule() -> None:
    position = engine.new_position("4k3/8/8/8/8/8/8/R3K3 w - - 99 60")
    assert not engine.terminal(position).is_over

    position = engine.apply(position, "a1a2")
    terminal = engine.terminal(position)
    assert terminal.kind == TerminalKind.DRAW
    assert terminal.reason == "fifty-move rule"


def test_pawn_move_resets_the_fifty_move_counter() -> None:
    position = engine.new_position("4k3/8/8/8/8/8/P7/R3K3 w - - 99 60")
    position = engine.apply(position, "a2a3")
    assert position.state.half_move_clock == 0
    assert not engine.terminal(position).is_over


def test_insufficient_material() -> None:
    position = engine.new_position("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
    terminal = engine.terminal(position)
    assert terminal.kind == TerminalKind.DRAW
    assert terminal.reason == "insufficient material"


def test_seat_color() -> None:
    assert seat_color(0) == Color.WHITE
    assert seat_color(1) == Color.BLACK


# --- COLOR SYMMETRY ---
def mirror_fen(fen: str) -> str:
    """Same position with the colors swapped: ranks flipped, piece case swapped, other side on move."""
    placement, side, castling, en_passant, half_moves, full_moves = fen.split(" ")
    placement = "/".join(reversed(placement.split("/"))).swapcase()
    side = "b" if side == "w" else "w"
    if castling != "-":
        castling = "".join(sorted(castling.swapcase(), key="KQkq".index))
    if en_passant != "-":
        en_passant = en_passant[0] + str(9 - int(en_passant[1]))
    return " ".join([placement, side, castling, en_passant, half_moves, full_moves])


def mirror_move(uci: str) -> str:
    return f"{uci[0]}{9 - int(uci[1])}{uci[2]}{9 - int(uci[3])}{uci[4:]}"


@pytest.mark.parametrize(
    "fen, move",
    [
        (STARTING_FEN, "e2e4"),
        # both sides may still castle either way
        ("r3k2r/pppq1ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPPQ1PPP/R3K2R w KQkq - 0 1", "a2a3"),
        # double step next to an enemy pawn: en passant for the reply
        ("4k3/8/8/8/3p4/8/4P3/4K3 w - - 0 1", "e2e4"),
        # promotion choices for the reply
        ("4k3/P7/8/8/8/8/1r6/4K3 b - - 0 1", "b2b3"),
    ],
)
def test_reply_moves_are_symmetric_under_color_swap(fen: str, move: str) -> None:
    position = play(engine.new_position(fen=fen), move)
    mirrored = play(engine.new_position(fen=mirror_fen(fen)), mirror_move(move))

    expected = sorted(mirror_move(reply) for reply in engine.legal_actions(position))
    assert expected
    assert sorted(engine.legal_actions(mirrored)) == expected
    assert engine.to_move(mirrored) == 1 - engine.to_move(position)


def test_en_passant_reply_mirrors() -> None:
    position = play(engine.new_position(fen="4k3/8/8/8/3p4/8/4P3/4K3 w - - 0 1"), "e2e4")
    mirrored = play(engine.new_position(fen="4k3/4p3/8/3P4/8/8/8/4K3 b - - 0 1"), "e7e5")
    assert "d4e3" in engine.legal_actions(position)
    assert "d5e6" in engine.legal_actions(mirrored)
