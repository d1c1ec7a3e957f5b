"""Unit tests for arcade/session/stats.py"""

import asyncio

from conftest import FakeLedger

from arcade.core.models import StatsReport
from arcade.core.shared_types import GameKind, GameMode
from arcade.session.session import GameSession
from arcade.session.stats import StatsReporter, build_report


def finished_chess() -> GameSession:
    session = GameSession.start("s-1", GameKind.CHESS, GameMode.BOT, ["alice", "bot"], {0})
    for move in ("f2f3", "e7e5", "g2g4", "d8h4"):
        session.apply_local(move)
    return session


def test_no_report_while_running() -> None:
    session = GameSession.start("s-1", GameKind.CHESS, GameMode.BOT, ["alice", "bot"], {0})
    assert build_report(session) is None


def test_build_report() -> None:
    session = finished_chess()
    assert build_report(session) == StatsReport(GameKind.CHESS, won=False, moves=4, player="alice")
    assert build_report(session, seat=1).won


def test_reporter_sends_the_result(ledger: FakeLedger) -> None:
    assert asyncio.run(StatsReporter(ledger).report(finished_chess()))
    assert len(ledger.results) == 1
    result = ledger.results[0]
    assert (result.game_kind, result.won, result.moves, result.player) == (GameKind.CHESS, False, 4, "alice")


def test_reporter_swallows_ledger_errors(ledger: FakeLedger) -> None:
    ledger.fail_record = True
    assert not asyncio.run(StatsReporter(ledger).report(finished_chess()))
