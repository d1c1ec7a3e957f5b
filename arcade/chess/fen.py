"""
Representation of a single position on the board. The part that can be encoded in a FEN string.
"""

from dataclasses import dataclass, replace
from string import ascii_lowercase
from typing import Optional, Self

from arcade.chess.castling import (
    CastlingDirection,
    castling_from_fen,
    castling_to_fen,
)
from arcade.chess.pieces import FEN_TO_PIECE, Color
from arcade.chess.square import BOARD_DIMENSIONS, Square
from arcade.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation.
    """

    # there should be 6 parts to the string
    parts = fen.split(" ")
    if len(parts) != 6:
        return False

    position, color, castling, en_passant, half_moves, full_moves = parts
    return (
        is_valid_position(position)
        and is_valid_color_code(color)
        and is_valid_castling_rights(castling)
        and is_valid_en_passant(en_passant)
        and is_valid_move_counter(half_moves)
        and is_valid_move_counter(full_moves)
    )


def is_valid_position(position: str) -> bool:
    """Only check the part of the FEN encoding for the board position."""
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False

    for rank_fen in rank_fens:
        file_count = 0
        for character in rank_fen:
            if character.isdigit():
                file_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                file_count += 1
            else:
                return False

        if file_count != num_files:
            return False

    # exactly one king per side
    return position.count("K") == 1 and position.count("k") == 1


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    """Either "-" or a subsequence of "KQkq" (in that order, no repeats)."""
    if castling == "-":
        return True
    remaining = "KQkq"
    for character in castling:
        position = remaining.find(character)
        if position < 0:
            return False
        remaining = remaining[position + 1 :]
    return bool(castling)


def is_valid_en_passant(en_passant: str) -> bool:
    """Valid en passant square encoding should be a square on the 3rd or 6th rank or a '-'"""
    if en_passant == "-":
        return True
    return is_valid_square(en_passant) and en_passant[1] in {"3", "6"}


def is_valid_square(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank"""
    num_files, num_ranks = BOARD_DIMENSIONS
    if len(square) < 2:
        return False

    file_char, rank_char = square[0], square[1:]
    if file_char not in ascii_lowercase[:num_files]:
        return False
    return rank_char.isdigit() and 1 <= int(rank_char) <= num_ranks


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


@dataclass(frozen=True)
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----

    <board position string><active color><castling rights><en passant square><# half move clock><number turns played>

    * The string to describe the board position is described in the Board class
    * The active color is either "w" or "b"
    * Castling rights: "K"/"Q" for white king/queen side, "k"/"q" for black. "-" once all are gone.
    * The en passant square is the square a pawn just skipped over with a double step. "-" otherwise.
    * The half move clock counts the moves since the last pawn move or capture (50-move rule).
    * The number of turns starts at 1 and increments after every move black makes.

    The state is frozen: `advance()` hands back the state after a move.
    """

    position: str
    color_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data"""
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")

        (
            position,
            active_color,
            castling_str,
            en_passant_algebraic,
            half_move_clock,
            num_turns,
        ) = fen.split(" ")

        return cls(
            position=position,
            color_to_move=Color.WHITE if active_color == "w" else Color.BLACK,
            castling_rights=castling_from_fen(castling_str),
            en_passant_square=(
                Square.from_algebraic(en_passant_algebraic)
                if en_passant_algebraic != "-"
                else None
            ),
            half_move_clock=int(half_move_clock),
            num_turns=int(num_turns),
        )

    def to_fen(self) -> str:
        """reverse operation: write a FEN from the given data"""
        return f"{self.repetition_key()} {self.half_move_clock} {self.num_turns}"

    def repetition_key(self, include_en_passant: bool = True) -> str:
        """The first four FEN fields: what has to be equal for two positions to count as a repetition."""
        active_color = "w" if self.color_to_move == Color.WHITE else "b"
        en_passant_algebraic = (
            self.en_passant_square.to_algebraic()
            if self.en_passant_square is not None and include_en_passant
            else "-"
        )
        castling_str = castling_to_fen(self.castling_rights)
        return f"{self.position} {active_color} {castling_str} {en_passant_algebraic}"

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    def advance(
        self,
        position: str,
        revoked: list[CastlingDirection],
        en_passant_square: Optional[Square],
        resets_half_move_clock: bool,
    ) -> Self:
        """State after the side to move made a move."""
        castling_rights = {
            direction: allowed and direction not in revoked
            for direction, allowed in self.castling_rights.items()
        }
        return replace(
            self,
            position=position,
            color_to_move=self.color_to_move.opponent,
            castling_rights=castling_rights,
            en_passant_square=en_passant_square,
            half_move_clock=0 if resets_half_move_clock else self.half_move_clock + 1,
            num_turns=(
                self.num_turns + 1
                if self.color_to_move == Color.BLACK
                else self.num_turns
            ),
        )
