"""
Standard Algebraic Notation (SAN)

Humans and text-generation services talk in SAN ("Nf3", "exd5", "O-O", "e8=Q#"), the engine in UCI.
This module translates one into the other for the legal moves of a position.
"""

from arcade.chess.game import ChessEngine, ChessPosition
from arcade.chess.moves import Move
from arcade.chess.pieces import PIECE_TO_SAN, PieceType
from arcade.core.shared_types import TerminalKind

_engine = ChessEngine()


def san(position: ChessPosition, move: Move, legal_moves: list[Move] | None = None) -> str:
    """SAN of a legal move in the given position."""
    if legal_moves is None:
        legal_moves = _engine.legal_moves(position)

    return _body(position, move, legal_moves) + _suffix(position, move)


def legal_san(position: ChessPosition) -> dict[str, str]:
    """Map SAN -> UCI for every legal move."""
    legal_moves = _engine.legal_moves(position)
    return {san(position, move, legal_moves): move.to_uci() for move in legal_moves}


def _body(position: ChessPosition, move: Move, legal_moves: list[Move]) -> str:
    if move.castling_direction is not None:
        return "O-O" if move.castling_direction.is_king_side else "O-O-O"

    board = position.board
    piece_type = board.piece(move.from_square).type
    is_capture = move.is_en_passant or not board.piece(move.to_square).is_empty
    target = move.to_square.to_algebraic()
    promotion = f"={PIECE_TO_SAN[move.promote_to]}" if move.promote_to else ""

    if piece_type == PieceType.PAWN:
        prefix = f"{move.from_square.file_name}x" if is_capture else ""
        return f"{prefix}{target}{promotion}"

    capture = "x" if is_capture else ""
    return f"{PIECE_TO_SAN[piece_type]}{_disambiguation(position, move, legal_moves)}{capture}{target}"


def _disambiguation(position: ChessPosition, move: Move, legal_moves: list[Move]) -> str:
    """When two pieces of the same type can reach the same square: add the file, the rank, or both."""
    board = position.board
    piece_type = board.piece(move.from_square).type
    rivals = [
        other.from_square
        for other in legal_moves
        if other.to_square == move.to_square
        and other.from_square != move.from_square
        and board.piece(other.from_square).type == piece_type
        and other.castling_direction is None
    ]
    if not rivals:
        return ""
    if all(square.file != move.from_square.file for square in rivals):
        return move.from_square.file_name
    if all(square.rank != move.from_square.rank for square in rivals):
        return str(move.from_square.rank)
    return move.from_square.to_algebraic()


def _suffix(position: ChessPosition, move: Move) -> str:
    after = _engine.apply_move(position, move)
    if not _engine.is_check(after):
        return ""
    if _engine.terminal(after).kind == TerminalKind.CHECKMATE:
        return "#"
    return "+"


def match_reply(position: ChessPosition, reply: str) -> str | None:
    """
    Interpret a free-text move (already trimmed) as exactly one legal move.

    Accepts UCI ("e2e4") and SAN with or without the check suffix ("Nf3", "nf3+", "O-O").
    Comparison is case-insensitive, so a reply that could mean two legal moves ("bxc5": bishop or
    b-pawn) is rejected. Returns the UCI of the match, None otherwise.
    """
    token = reply.strip().lower().rstrip("+#")
    if token and set(token) <= {"0", "-"}:
        token = token.replace("0", "o")
    legal_moves = _engine.legal_moves(position)

    matches: set[str] = set()
    for move in legal_moves:
        uci = move.to_uci()
        if token == uci:
            matches.add(uci)
            continue
        if token == san(position, move, legal_moves).lower().rstrip("+#"):
            matches.add(uci)
    if len(matches) != 1:
        return None
    return matches.pop()
