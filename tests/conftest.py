"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures / test doubles required for testing multiple layers.
"""

from typing import Generator, Optional, Union

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from arcade.core.config import Settings
from arcade.core.exceptions import LedgerError, SuggestionError
from arcade.core.models import BOT_PLAYER
from arcade.core.shared_types import GameMode, LobbyStatus, SessionStatus
from arcade.db.schema import Base
from arcade.db.sql_ledger import SQLLedger
from arcade.ledger.models import (
    CreateLobbyRequest,
    CreateSessionRequest,
    ProfileRequest,
    RemoteAction,
    RemoteLobbyState,
    RemoteSessionState,
    StatsReportRequest,
    SubmitActionRequest,
)

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of the ledger independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def sql_ledger(db_session_repo: Session) -> SQLLedger:
    return SQLLedger(db_session_repo)


@pytest.fixture
def quiet_settings() -> Settings:
    """Timers far enough in the future that tests drive polls / ticks by hand."""
    return Settings(
        poll_interval_seconds=3600,
        clock_tick_seconds=3600,
        clock_increment_seconds=0,
        bot_think_delay_seconds=0,
        lobby_poll_interval_seconds=0.01,
        lobby_max_attempts=3,
    )


# --- test doubles ---
class FakeLedger:
    """In-memory LedgerClient. Tests edit `sessions` / `lobbies` directly to play the remote side."""

    def __init__(self) -> None:
        self.sessions: dict[str, RemoteSessionState] = {}
        self.lobbies: dict[str, RemoteLobbyState] = {}
        self.lobby_answers: list[Union[RemoteLobbyState, Exception]] = []
        self.submitted: list[SubmitActionRequest] = []
        self.results: list[StatsReportRequest] = []
        self.profiles: list[ProfileRequest] = []
        self.controls: list[tuple[str, str, str]] = []
        self.fetches = 0
        self.fail_submit = False
        self.fail_fetch = False
        self.fail_record = False

    # remote side helpers
    def push(self, session_id: str, *moves: str, player: Optional[str] = None) -> None:
        """Append moves to the remote log, as if the ledger accepted them."""
        remote = self.sessions[session_id]
        actions = list(remote.actions)
        for move in moves:
            seat = len(actions) % 2
            actions.append(
                RemoteAction(seq=len(actions), player=player or remote.players[seat], move=move)
            )
        self.sessions[session_id] = remote.model_copy(update={"actions": actions})

    def set_status(
        self, session_id: str, status: SessionStatus, winner: Optional[str] = None, reason: str = ""
    ) -> None:
        remote = self.sessions[session_id]
        self.sessions[session_id] = remote.model_copy(
            update={"status": status, "winner": winner, "reason": reason}
        )

    # LedgerClient
    async def fetch_session(self, session_id: str) -> RemoteSessionState:
        self.fetches += 1
        if self.fail_fetch:
            raise LedgerError("ledger unreachable")
        if session_id not in self.sessions:
            raise LedgerError(f"no session {session_id}")
        return self.sessions[session_id]

    async def fetch_lobby(self, lobby_id: str) -> RemoteLobbyState:
        if self.lobby_answers:
            answer = self.lobby_answers.pop(0)
            if isinstance(answer, Exception):
                raise answer
            return answer
        if lobby_id not in self.lobbies:
            raise LedgerError(f"no lobby {lobby_id}")
        return self.lobbies[lobby_id]

    async def create_session(self, request: CreateSessionRequest) -> str:
        session_id = f"session-{len(self.sessions) + 1}"
        if request.mode == GameMode.BOT:
            players = [request.player, request.opponent or BOT_PLAYER]
        elif request.mode == GameMode.LOCAL:
            players = [request.player, request.opponent or request.player]
        else:
            players = [request.player] + ([request.opponent] if request.opponent else [])
        self.sessions[session_id] = RemoteSessionState(
            session_id=session_id,
            kind=request.kind,
            mode=request.mode,
            status=SessionStatus.IN_PROGRESS,
            players=players,
            seed=request.seed if request.seed is not None else 7,
            time_control=request.time_control,
        )
        return session_id

    async def create_lobby(self, request: CreateLobbyRequest) -> str:
        lobby_id = f"lobby-{len(self.lobbies) + 1}"
        self.lobbies[lobby_id] = RemoteLobbyState(
            lobby_id=lobby_id,
            creator=request.creator,
            kind=request.kind,
            is_public=request.is_public,
            status=LobbyStatus.OPEN,
            time_control=request.time_control,
            players=[request.creator],
        )
        return lobby_id

    async def join_lobby(self, lobby_id: str, player: str, password: Optional[str] = None) -> None:
        lobby = self.lobbies[lobby_id]
        session_id = await self.create_session(
            CreateSessionRequest(
                kind=lobby.kind,
                mode=GameMode.PEER,
                player=lobby.creator,
                opponent=player,
                seed=11,
                time_control=lobby.time_control,
            )
        )
        self.lobbies[lobby_id] = lobby.model_copy(
            update={
                "players": [lobby.creator, player],
                "status": LobbyStatus.STARTED,
                "session_id": session_id,
            }
        )

    async def cancel_lobby(self, lobby_id: str, player: str) -> None:
        self.lobbies[lobby_id] = self.lobbies[lobby_id].model_copy(
            update={"status": LobbyStatus.CANCELLED}
        )

    async def submit_action(self, request: SubmitActionRequest) -> None:
        self.submitted.append(request)
        if self.fail_submit:
            raise LedgerError("submission dropped")

    async def register_profile(self, request: ProfileRequest) -> None:
        self.profiles.append(request)

    async def record_result(self, request: StatsReportRequest) -> None:
        if self.fail_record:
            raise LedgerError("stats service down")
        self.results.append(request)

    async def resign(self, session_id: str, player: str) -> None:
        self.controls.append(("resign", session_id, player))

    async def offer_draw(self, session_id: str, player: str) -> None:
        self.controls.append(("offer_draw", session_id, player))

    async def accept_draw(self, session_id: str, player: str) -> None:
        self.controls.append(("accept_draw", session_id, player))

    async def claim_timeout(self, session_id: str, player: str) -> None:
        self.controls.append(("claim_timeout", session_id, player))


class ScriptedSuggestions:
    """SuggestionClient answering from a list; an Exception in the list is raised instead."""

    def __init__(self, *replies: Union[str, Exception]) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []
        self.temperatures: list[float] = []

    async def suggest(self, prompt: str, temperature: float = 0.7) -> str:
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        if not self.replies:
            raise SuggestionError("no more scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()
