"""One canonical rule engine per game kind. Every surface (peer, bot, local, SQL ledger) goes through here."""

from arcade.blackjack.game import BlackjackEngine
from arcade.chess.game import ChessEngine
from arcade.core.exceptions import InvalidRequestError
from arcade.core.rules import RuleEngine
from arcade.core.shared_types import GameKind
from arcade.poker.game import PokerEngine

ENGINES: dict[GameKind, RuleEngine] = {
    GameKind.CHESS: ChessEngine(),
    GameKind.POKER: PokerEngine(),
    GameKind.BLACKJACK: BlackjackEngine(),
}


def engine_for(kind: GameKind | str) -> RuleEngine:
    try:
        return ENGINES[GameKind(kind)]
    except ValueError as exc:
        raise InvalidRequestError(f"Unknown game kind: {kind!r}") from exc
