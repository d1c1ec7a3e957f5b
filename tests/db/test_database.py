"""Unit tests for arcade/db/database.py"""

import asyncio

from sqlalchemy import inspect

from arcade.core.shared_types import GameKind, GameMode
from arcade.db.database import get_db, make_session_factory
from arcade.db.sql_ledger import SQLLedger
from arcade.ledger.models import CreateSessionRequest


def test_session_factory_creates_tables() -> None:
    factory = make_session_factory("sqlite:///:memory:")
    tables = set(inspect(factory.kw["bind"]).get_table_names())
    assert {"sessions", "actions", "lobbies", "results", "profiles"} <= tables


def test_get_db_feeds_a_ledger() -> None:
    factory = make_session_factory("sqlite://")
    sessions = get_db(factory)
    db = next(sessions)
    ledger = SQLLedger(db)
    session_id = asyncio.run(
        ledger.create_session(CreateSessionRequest(kind=GameKind.CHESS, mode=GameMode.BOT, player="alice"))
    )
    assert asyncio.run(ledger.fetch_session(session_id)).players[0] == "alice"
    sessions.close()
