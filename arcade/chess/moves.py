"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define candidate move sets for each piece type.


Legality (not leaving your own king in check) is checked later by the ChessEngine
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from arcade.chess.castling import CASTLING_RULES, CastlingDirection
from arcade.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceType
from arcade.chess.square import BOARD_DIMENSIONS, Square
from arcade.core.exceptions import IllegalMoveError


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Piece: ...


Vector = tuple[int, int]

KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = [
    (0, 1),
    (0, -1),
    (1, 0),
    (-1, 0),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
]
DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None
    castling_direction: Optional[CastlingDirection] = None
    is_en_passant: bool = False

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface:
        ---

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side

        NOTE: Castling / En Passant flags are filled in by the engine, when it matches the move against the legal ones.
        """
        uci = uci.strip().lower()
        if len(uci) not in (4, 5):
            raise IllegalMoveError(f"Cannot interpret {uci!r} as a UCI move.")
        try:
            from_sq = Square.from_algebraic(uci[:2])
            to_sq = Square.from_algebraic(uci[2:4])
            promote_to = FEN_TO_PIECE[uci[4]] if len(uci) == 5 else None
        except (KeyError, ValueError) as exc:
            raise IllegalMoveError(f"Cannot interpret {uci!r} as a UCI move.") from exc
        if not (from_sq.is_within_bounds() and to_sq.is_within_bounds()):
            raise IllegalMoveError(f"Move {uci!r} leaves the board.")
        return cls(from_sq, to_sq, promote_to=promote_to)

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"


# --- MOVEMENT RULES ---
def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Move]:
    """
    Raycasting algorithm
    -----

    We define move directions and move along them until we hit another piece or
    the edge of the board. The first occupied square is included when it holds an opponent's piece (capture).
    """
    player_color = board.piece(square).color
    moves: list[Move] = []
    for df, dr in directions:
        target_square = square
        while True:
            target_square = target_square.offset(df, dr)
            if not target_square.is_within_bounds():
                break

            target_piece = board.piece(target_square)
            if not target_piece.is_empty:
                if target_piece.color == player_color.opponent:
                    moves.append(Move(square, target_square))
                break

            moves.append(Move(square, target_square))
    return moves


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Move]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just move a single step along a direction"""
    player_color = board.piece(square).color
    moves: list[Move] = []
    for df, dr in deltas:
        target_square = square.offset(df, dr)
        if not target_square.is_within_bounds():
            continue
        if board.piece(target_square).color != player_color:
            moves.append(Move(square, target_square))
    return moves


def pawn_direction(color: Color) -> int:
    """White moves UP the board, black moves DOWN"""
    return 1 if color == Color.WHITE else -1


def pawn_starting_rank(color: Color) -> int:
    return 2 if color == Color.WHITE else BOARD_DIMENSIONS[1] - 1


def candidate_pawn_moves(square: Square, board: Board) -> list[Move]:
    """
    A pawn:
    - moves by a single square forward, onto an empty square only.
    - can move by two from its starting rank, if both squares are empty
    - takes diagonally

    NOTE: En passant is added by the engine, it needs to know the previous move.
    """
    color = board.piece(square).color
    direction = pawn_direction(color)
    moves: list[Move] = []

    one_step = square.offset(0, direction)
    if one_step.is_within_bounds() and board.piece(one_step).is_empty:
        moves.append(Move(square, one_step))
        two_steps = square.offset(0, 2 * direction)
        if square.rank == pawn_starting_rank(color) and board.piece(two_steps).is_empty:
            moves.append(Move(square, two_steps))

    for df in (-1, 1):
        target_square = square.offset(df, direction)
        if not target_square.is_within_bounds():
            continue
        if board.piece(target_square).color == color.opponent:
            moves.append(Move(square, target_square))
    return moves


def candidate_knight_moves(square: Square, board: Board) -> list[Move]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, board: Board) -> list[Move]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Move]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Move]:
    """The Queen combines the rook moves and the bishop moves"""
    return raycasting_move(square, board, STRAIGHTS + DIAGONALS)


def candidate_king_moves(square: Square, board: Board) -> list[Move]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (added by the engine).
    """
    return single_step_move(square, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# --- CAPTURING RULES / ATTACKING RULES ---
def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_types: tuple[PieceType, ...],
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Where `raycasting_move()` answers
    _"What is the line-of-sight of the piece standing on the specified square?"_

    this function answers
    _"Is the specified square in the line-of-sight of a piece of the given color and type(s), sliding along these directions?"_
    """
    for df, dr in directions:
        target_square = square
        while True:
            target_square = target_square.offset(df, dr)
            if not target_square.is_within_bounds():
                break
            piece_found = board.piece(target_square)
            if piece_found.is_empty:
                continue
            if piece_found.color == by_color and piece_found.type in by_piece_types:
                return True
            break
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """Single step equivalent (pawns, kings, knights)."""
    for df, dr in deltas:
        target_square = square.offset(df, dr)
        if not target_square.is_within_bounds():
            continue
        piece_found = board.piece(target_square)
        if piece_found.color == by_color and piece_found.type == by_piece_type:
            return True
    return False


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    """
    Pawn moves are not symmetric: to check if a white pawn attacks your square, look one rank DOWN the board.
    Hence, the vectors are exactly opposite to the ones used for pawn captures.
    """
    back = -pawn_direction(by_color)
    return single_step_attack(
        square, by_color, PieceType.PAWN, board, [(1, back), (-1, back)]
    )


def is_attacked_by_knight(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_by_king(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KING, board, KING_DELTAS)


def is_attacked_diagonally(square: Square, by_color: Color, board: Board) -> bool:
    """Bishops and queens"""
    return raycasting_attack(
        square, by_color, (PieceType.BISHOP, PieceType.QUEEN), board, DIAGONALS
    )


def is_attacked_straight(square: Square, by_color: Color, board: Board) -> bool:
    """Rooks and queens"""
    return raycasting_attack(
        square, by_color, (PieceType.ROOK, PieceType.QUEEN), board, STRAIGHTS
    )


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Square, Color, Board], bool]
ATTACK_RULES: tuple[IsAttackedFn, ...] = (
    is_attacked_by_pawn,
    is_attacked_by_knight,
    is_attacked_by_king,
    is_attacked_diagonally,
    is_attacked_straight,
)


def is_square_attacked(square: Square, by_color: Color, board: Board) -> bool:
    return any(rule(square, by_color, board) for rule in ATTACK_RULES)


# -- CASTLING MOVES ---
def candidate_castling_move(direction: CastlingDirection) -> Move:
    squares = CASTLING_RULES[direction]
    return Move(squares.king_from, squares.king_to, castling_direction=direction)


# -- EN PASSANT MOVES ---
def en_passant_moves(
    en_passant_square: Square, color: Color, board: Board
) -> list[Move]:
    """Given a target en passant square, check the adjacent files (one rank behind it) for pawns of the correct color."""
    behind = -pawn_direction(color)
    own_pawn = Piece(PieceType.PAWN, color)
    moves: list[Move] = []
    for df in (-1, 1):
        maybe_pawn_square = en_passant_square.offset(df, behind)
        if not maybe_pawn_square.is_within_bounds():
            continue
        if board.piece(maybe_pawn_square) == own_pawn:
            moves.append(
                Move(maybe_pawn_square, en_passant_square, is_en_passant=True)
            )
    return moves


# -- PAWN PROMOTION MOVES --
PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
]


def is_pawn_push_to_promotion_square(move: Move, board: Board) -> bool:
    """check if the move is a pawn move and if it reaches either the first or the final rank"""
    is_pawn_move = board.piece(move.from_square).type == PieceType.PAWN
    return is_pawn_move and move.to_square.rank in (1, BOARD_DIMENSIONS[1])


def pawn_pushes_w_promotion(pawn_push: Move) -> list[Move]:
    """Return multiple copies of the pawn push with the piece type to promote into filled in."""
    return [
        Move(pawn_push.from_square, pawn_push.to_square, promote_to=piece_type)
        for piece_type in PROMOTION_OPTIONS
    ]
