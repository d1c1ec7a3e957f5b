"""The Game board implements all rules that effect the `position` (in chess: the configuration of pieces on the board)"""

from dataclasses import dataclass
from typing import Self

from arcade.chess.castling import CASTLING_RULES, CastlingDirection
from arcade.chess.moves import (
    MOVEMENT_RULES,
    CandidateMovesFn,
    Move,
    is_square_attacked,
    pawn_direction,
)
from arcade.chess.pieces import EMPTY, Color, Piece, PieceType
from arcade.chess.square import BOARD_DIMENSIONS, Square
from arcade.core.exceptions import GameStateError

MINOR_PIECES = (PieceType.BISHOP, PieceType.KNIGHT)


@dataclass
class Board:
    position: dict[Square, Piece]

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the first part of a FEN string (the piece placement).

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        * FEN is read from the 8th rank down to the 1st
        * within a rank the first character is the a-file
        * a digit stands for that many empty squares
        """
        position: dict[Square, Piece] = {}
        for rank_idx, fen_one_rank in enumerate(fen_str.split("/")):
            rank = BOARD_DIMENSIONS[1] - rank_idx
            file = 1
            for character in fen_one_rank:
                if character.isalpha():
                    position[Square(file, rank)] = Piece.from_fen(character)
                    file += 1
                else:
                    for _ in range(int(character)):
                        position[Square(file, rank)] = EMPTY
                        file += 1
        return cls(position)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1], 0, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(1, BOARD_DIMENSIONS[0] + 1):
            piece = self.piece(Square(file, rank))

            if not piece.is_empty:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def copy(self) -> "Board":
        """Pieces are immutable, so a shallow copy of the mapping is a full copy of the board."""
        return Board(dict(self.position))

    def piece(self, square: Square) -> Piece:
        return self.position[square]

    def locate_pieces(self, piece_type: PieceType, color: Color) -> list[Square]:
        return [
            square
            for square, piece in self.position.items()
            if piece.type == piece_type and piece.color == color
        ]

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square for square, piece in self.position.items() if piece.color == color
        ]

    def king_square(self, color: Color) -> Square:
        kings = self.locate_pieces(PieceType.KING, color)
        if len(kings) != 1:
            raise GameStateError(f"Expected exactly one {color.name.lower()} king.")
        return kings[0]

    # --- ATTACKS ---
    def is_attacked(self, square: Square, by_color: Color) -> bool:
        return is_square_attacked(square, by_color, self)

    def is_check(self, color: Color) -> bool:
        """Is the king of `color` attacked?"""
        return self.is_attacked(self.king_square(color), color.opponent)

    def generate_candidate_moves(self, color: Color) -> list[Move]:
        """
        Before knowing the set of legal moves, we use raycasting to find candidate moves, which will later be tested for legality
        (making sure it does not put yourself in check.)

        ---
        NOTE: Castling / en passant / promotions are taken care of by the engine.
        """
        candidate_moves: list[Move] = []
        for starting_square in self.locate_color(color):
            piece_type = self.piece(starting_square).type
            movement_rule: CandidateMovesFn = MOVEMENT_RULES[piece_type]
            candidate_moves.extend(movement_rule(starting_square, self))
        return candidate_moves

    # --- UPDATES (only ever called on a fresh copy) ---
    def move_piece(self, move: Move) -> None:
        """Update the position on the board. Handles the special moves as well."""
        if move.castling_direction is not None:
            self._castle(move.castling_direction)
            return

        piece_that_moved = self.piece(move.from_square)
        self.position[move.from_square] = EMPTY
        if move.is_en_passant:
            captured_square = move.to_square.offset(
                0, -pawn_direction(piece_that_moved.color)
            )
            self.position[captured_square] = EMPTY
        if move.promote_to is not None:
            piece_that_moved = piece_that_moved.promoted(move.promote_to)
        self.position[move.to_square] = piece_that_moved

    def _castle(self, direction: CastlingDirection) -> None:
        """The king and the rook both relocate."""
        squares = CASTLING_RULES[direction]
        king = self.piece(squares.king_from)
        rook = self.piece(squares.rook_from)
        self.position[squares.king_from] = EMPTY
        self.position[squares.rook_from] = EMPTY
        self.position[squares.king_to] = king
        self.position[squares.rook_to] = rook

    # --- MATERIAL ---
    def is_insufficient_material(self) -> bool:
        """
        Neither side can possibly mate:
        * king vs king
        * king + single minor piece vs king
        * king + bishop(s) vs king + bishop(s) with every bishop on the same square color
        """
        remaining = [
            (square, piece)
            for square, piece in self.position.items()
            if not piece.is_empty and piece.type != PieceType.KING
        ]
        if not remaining:
            return True
        if any(piece.type not in MINOR_PIECES for _, piece in remaining):
            return False
        if len(remaining) == 1:
            return True
        if all(piece.type == PieceType.BISHOP for _, piece in remaining):
            square_colors = {(square.file + square.rank) % 2 for square, _ in remaining}
            return len(square_colors) == 1
        return False
