"""
Custom exceptions shared by all layers.

Everything derives from GameError, so the service layer can catch a single type when it needs to.
"""


class GameError(Exception):
    """Root of every error raised on purpose by this package."""


class GameStateError(GameError):
    """The session / position is not in a state that allows the request (game over, not started, ...)."""


class IllegalMoveError(GameError):
    """Rejected by the rule engine before any state was touched."""


class NotYourTurnError(GameError):
    """A player tried to act while another seat is on move."""


class InvalidFENError(GameError):
    """Cannot interpret a string as FEN."""


class InvalidRequestError(GameError):
    """Malformed request data at the service boundary."""


class LedgerError(GameError):
    """The remote ledger rejected a call or could not be reached."""


class RepositoryError(LedgerError):
    """Record not found / could not be stored by the SQL ledger."""


class SuggestionError(GameError):
    """The external move-suggestion service failed or answered something unusable."""


class LobbyClosedError(GameError):
    """The lobby was cancelled or expired before it resolved into a session."""


class LobbyResolutionTimeout(GameError):
    """The lobby did not resolve into a session within the allowed number of polls."""

    def __init__(self, lobby_id: str, attempts: int) -> None:
        super().__init__(
            f"Lobby {lobby_id!r} did not resolve into a session after {attempts} attempts."
        )
        self.lobby_id = lobby_id
        self.attempts = attempts
