"""End-of-session result reporting. Best effort: a failure never keeps the player from leaving."""

import logging
from typing import Optional

from arcade.core.exceptions import LedgerError
from arcade.core.models import StatsReport
from arcade.ledger.client import LedgerClient
from arcade.ledger.models import StatsReportRequest
from arcade.session.session import GameSession

logger = logging.getLogger(__name__)


def build_report(session: GameSession, seat: int = 0) -> Optional[StatsReport]:
    """What `seat` achieved in a finished session (None while it is still running)."""
    if not session.terminal.is_over:
        return None
    return StatsReport(
        game_kind=session.kind,
        won=session.terminal.winner == seat,
        moves=session.engine.move_count(session.position),
        player=session.player_for(seat),
    )


class StatsReporter:
    def __init__(self, ledger: LedgerClient) -> None:
        self.ledger = ledger

    async def report(self, session: GameSession, seat: int = 0) -> bool:
        """Send the result of `seat`. Returns whether the ledger took it."""
        report = build_report(session, seat)
        if report is None:
            return False
        request = StatsReportRequest(
            game_kind=report.game_kind,
            won=report.won,
            moves=report.moves,
            player=report.player,
        )
        try:
            await self.ledger.record_result(request)
        except LedgerError as exc:
            logger.warning("Could not record result of session %s: %s", session.session_id, exc)
            return False
        return True
