"""
Boundary layer data model(s).

These objects travel between the rule engines, the sync layer and the service.
(Decouples the wire models of the ledger from what the game logic needs to know.)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from arcade.core.shared_types import GameKind, TerminalKind

# Type aliases to make the models easier to read
Seat = int
PlayerId = str

# Participant id of the computer opponent in bot-mode sessions
BOT_PLAYER: PlayerId = "bot"


@dataclass(frozen=True)
class Action:
    """
    One entry of a session's action log.

    `seq` is the 0-based index within the log, `player` the participant that made it and `move`
    the game-specific token:
    * chess: UCI ("e2e4", "e7e8q")
    * poker: "fold", "check", "call", "raise:40", "allin"
    * blackjack: "hit", "stand", "double"
    """

    seq: int
    player: PlayerId
    move: str


@dataclass(frozen=True)
class Terminal:
    """Outcome of a position / session. `winner` is a seat index, or None for draws, splits and cancellations."""

    kind: TerminalKind
    winner: Optional[Seat] = None
    reason: str = ""

    @classmethod
    def none(cls) -> Terminal:
        return cls(TerminalKind.NONE)

    @property
    def is_over(self) -> bool:
        return self.kind != TerminalKind.NONE


@dataclass(frozen=True)
class StatsReport:
    """What the profile subsystem gets to know about a finished session."""

    game_kind: GameKind
    won: bool
    moves: int
    player: PlayerId
