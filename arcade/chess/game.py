"""
The chess rule engine.

`ChessPosition` is the frozen snapshot the sync layer passes around, `ChessEngine` implements the
RuleEngine contract on top of it: it orchestrates board updates, FEN bookkeeping and the terminal checks.
"""

from dataclasses import dataclass
from typing import Optional

from arcade.chess.board import Board
from arcade.chess.castling import (
    CASTLING_RULES,
    CastlingDirection,
    directions_for,
    revoked_by_square,
)
from arcade.chess.fen import FENState
from arcade.chess.moves import (
    Move,
    candidate_castling_move,
    en_passant_moves,
    is_pawn_push_to_promotion_square,
    pawn_pushes_w_promotion,
)
from arcade.chess.pieces import Color, PieceType
from arcade.chess.square import Square
from arcade.core.exceptions import IllegalMoveError
from arcade.core.models import Seat, Terminal
from arcade.core.shared_types import TerminalKind


FIFTY_MOVE_RULE_HALF_MOVES = 100
REPETITIONS_FOR_DRAW = 3


@dataclass(frozen=True)
class ChessPosition:
    board: Board
    state: FENState
    history: tuple[str, ...]  # repetition keys of every earlier position
    moves: tuple[str, ...]  # UCI

    @property
    def fen(self) -> str:
        return self.state.to_fen()

    @property
    def color_to_move(self) -> Color:
        return self.state.color_to_move


class ChessEngine:
    """Standard chess: castling, en passant, promotion, threefold repetition, 50-move rule."""

    kind = "chess"

    def new_position(
        self, fen: Optional[str] = None, seed: Optional[int] = None
    ) -> ChessPosition:
        """`seed` is accepted for a uniform engine signature, chess has no randomness."""
        state = FENState.from_fen(fen) if fen else FENState.starting_position()
        return ChessPosition(
            board=Board.from_fen(state.position), state=state, history=(), moves=()
        )

    # --- RuleEngine contract ---
    def legal_actions(self, position: ChessPosition) -> list[str]:
        if self._rule_terminal(position).is_over:
            return []
        return [move.to_uci() for move in self.legal_moves(position)]

    def legal_destinations(self, position: ChessPosition, square: str) -> set[str]:
        """Destination squares for the piece on `square` (empty when it is not the mover's piece)."""
        from_square = Square.from_algebraic(square)
        return {
            move.to_square.to_algebraic()
            for move in self.legal_moves(position)
            if move.from_square == from_square
        }

    def apply(self, position: ChessPosition, move: str) -> ChessPosition:
        if self._rule_terminal(position).is_over:
            raise IllegalMoveError(f"Game is over, cannot play {move!r}.")
        return self.apply_move(position, self.match_legal_move(position, move))

    def terminal(self, position: ChessPosition) -> Terminal:
        return self._rule_terminal(position)

    def to_move(self, position: ChessPosition) -> Optional[Seat]:
        if self._rule_terminal(position).is_over:
            return None
        return position.color_to_move.seat

    def move_count(self, position: ChessPosition) -> int:
        return len(position.moves)

    # --- move generation ---
    def legal_moves(self, position: ChessPosition) -> list[Move]:
        """
        List of legal moves for the side to move
        ----

        1. generate candidate moves, using the basic movement rules for all pieces (the board does this calculation)
        2. add candidate castling moves
        3. add candidate en passant moves
        4. remove moves that put (or leave) you in check
        5. Pawn push to promotion square? --> one move for every choice of piece type to promote into.
        """
        board = position.board
        color = position.color_to_move

        candidate_moves = board.generate_candidate_moves(color)
        candidate_moves.extend(self._castling_moves(position))
        if position.state.en_passant_square is not None:
            candidate_moves.extend(
                en_passant_moves(position.state.en_passant_square, color, board)
            )

        legal_moves: list[Move] = []
        for move in candidate_moves:
            if self._is_putting_yourself_in_check(board, move, color):
                continue
            if is_pawn_push_to_promotion_square(move, board):
                legal_moves.extend(pawn_pushes_w_promotion(move))
            else:
                legal_moves.append(move)
        return legal_moves

    def match_legal_move(self, position: ChessPosition, uci: str) -> Move:
        """Find the legal move that the UCI string describes (this fills in the castling / en passant flags)."""
        requested = Move.from_uci(uci)
        if (
            requested.promote_to is None
            and position.board.piece(requested.from_square).type == PieceType.PAWN
            and is_pawn_push_to_promotion_square(requested, position.board)
        ):
            requested = Move(
                requested.from_square, requested.to_square, promote_to=PieceType.QUEEN
            )

        for move in self.legal_moves(position):
            if (
                move.from_square == requested.from_square
                and move.to_square == requested.to_square
                and move.promote_to == requested.promote_to
            ):
                return move
        raise IllegalMoveError(f"Move not allowed: {uci}")

    def apply_move(self, position: ChessPosition, move: Move) -> ChessPosition:
        """Play an already validated move."""
        board = position.board.copy()
        moving_piece = board.piece(move.from_square)
        is_capture = move.is_en_passant or not board.piece(move.to_square).is_empty
        board.move_piece(move)

        revoked = revoked_by_square(move.from_square) + revoked_by_square(
            move.to_square
        )
        state = position.state.advance(
            position=board.to_fen(),
            revoked=revoked,
            en_passant_square=self._en_passant_target(move, moving_piece.type),
            resets_half_move_clock=is_capture or moving_piece.type == PieceType.PAWN,
        )
        return ChessPosition(
            board=board,
            state=state,
            history=position.history + (self.repetition_key(position),),
            moves=position.moves + (move.to_uci(),),
        )

    def is_check(self, position: ChessPosition) -> bool:
        return position.board.is_check(position.color_to_move)

    def repetition_key(self, position: ChessPosition) -> str:
        """The en passant square only makes a difference when a capture there is possible."""
        ep_square = position.state.en_passant_square
        include_ep = ep_square is not None and bool(
            en_passant_moves(ep_square, position.color_to_move, position.board)
        )
        return position.state.repetition_key(include_en_passant=include_ep)

    # --- terminal checks, in priority order ---
    def _rule_terminal(self, position: ChessPosition) -> Terminal:
        color = position.color_to_move
        if not self.legal_moves(position):
            if position.board.is_check(color):
                return Terminal(
                    TerminalKind.CHECKMATE, winner=color.opponent.seat, reason="checkmate"
                )
            return Terminal(TerminalKind.STALEMATE, reason="stalemate")
        if self._is_three_fold_repetition(position):
            return Terminal(TerminalKind.DRAW, reason="threefold repetition")
        if position.state.half_move_clock >= FIFTY_MOVE_RULE_HALF_MOVES:
            return Terminal(TerminalKind.DRAW, reason="fifty-move rule")
        if position.board.is_insufficient_material():
            return Terminal(TerminalKind.DRAW, reason="insufficient material")
        return Terminal.none()

    def _is_three_fold_repetition(self, position: ChessPosition) -> bool:
        key = self.repetition_key(position)
        return position.history.count(key) + 1 >= REPETITIONS_FOR_DRAW

    # --- helpers ---
    def _castling_moves(self, position: ChessPosition) -> list[Move]:
        """
        Castling is allowed iff
        * the right has not been revoked (neither king nor rook moved / rook was not captured)
        * the squares between king and rook are empty
        * the king does not start on, pass through, or land on an attacked square
        """
        board = position.board
        color = position.color_to_move
        moves: list[Move] = []
        for direction in directions_for(color):
            if not position.state.castling_rights[direction]:
                continue
            if not self._castling_pieces_in_place(board, direction):
                continue
            squares = CASTLING_RULES[direction]
            if any(not board.piece(square).is_empty for square in squares.between()):
                continue
            if any(
                board.is_attacked(square, color.opponent)
                for square in squares.king_path()
            ):
                continue
            moves.append(candidate_castling_move(direction))
        return moves

    @staticmethod
    def _castling_pieces_in_place(board: Board, direction: CastlingDirection) -> bool:
        """FEN may claim rights that the placement contradicts."""
        squares = CASTLING_RULES[direction]
        king = board.piece(squares.king_from)
        rook = board.piece(squares.rook_from)
        return (
            king.type == PieceType.KING
            and king.color == direction.color
            and rook.type == PieceType.ROOK
            and rook.color == direction.color
        )

    @staticmethod
    def _is_putting_yourself_in_check(board: Board, move: Move, color: Color) -> bool:
        """Play the candidate on a copy and see if the king is attacked afterwards."""
        trial = board.copy()
        trial.move_piece(move)
        return trial.is_check(color)

    @staticmethod
    def _en_passant_target(move: Move, piece_type: PieceType) -> Optional[Square]:
        """Only a double pawn step creates an en passant square: the one skipped over."""
        if piece_type != PieceType.PAWN:
            return None
        if abs(move.to_square.rank - move.from_square.rank) != 2:
            return None
        direction = 1 if move.to_square.rank > move.from_square.rank else -1
        return move.from_square.offset(0, direction)


def seat_color(seat: Seat) -> Color:
    return Color.WHITE if seat == 0 else Color.BLACK


