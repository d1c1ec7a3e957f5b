"""
Type definitions used across layers
"""

from enum import StrEnum


class GameKind(StrEnum):
    CHESS = "chess"
    POKER = "poker"
    BLACKJACK = "blackjack"


class GameMode(StrEnum):
    BOT = "bot"
    PEER = "peer"
    LOCAL = "local"


class SessionStatus(StrEnum):
    """Status of a session as reported by the ledger."""

    WAITING_FOR_OPPONENT = "waiting for opponent"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed out"


class LobbyStatus(StrEnum):
    OPEN = "open"
    FULL = "full"
    STARTED = "started"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class TerminalKind(StrEnum):
    NONE = "none"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"
    FOLD = "fold"
    SHOWDOWN = "showdown"
    SETTLED = "settled"
    TIMEOUT = "timeout"
    RESIGNATION = "resignation"
    CANCELLED = "cancelled"


# Remote statuses after which no more actions will be accepted
CLOSED_STATUSES: frozenset[SessionStatus] = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.TIMED_OUT}
)
