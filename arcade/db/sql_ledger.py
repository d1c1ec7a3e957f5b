"""
Implementation of LedgerClient using SQLAlchemy.

A self-hosted authority for local / offline play and for integration tests: it serialises the moves of a
session (turn and legality are checked with the same rule engines the clients use), keeps the chess-style
clock of peer sessions and resolves lobbies into sessions once the second player joins.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from arcade.core.exceptions import IllegalMoveError, LedgerError, RepositoryError
from arcade.core.models import BOT_PLAYER, Action, Terminal
from arcade.core.rules import replay
from arcade.core.shared_types import CLOSED_STATUSES, GameMode, LobbyStatus, SessionStatus
from arcade.db.schema import DBAction, DBLobby, DBProfile, DBResult, DBSession, utc_now
from arcade.engines import engine_for
from arcade.ledger.models import (
    CreateLobbyRequest,
    CreateSessionRequest,
    LobbyId,
    PlayerId,
    ProfileRequest,
    RemoteAction,
    RemoteLobbyState,
    RemoteSessionState,
    SessionId,
    StatsReportRequest,
    SubmitActionRequest,
)

logger = logging.getLogger(__name__)


class SQLLedger:
    """
    Data stored using SQL / methods implemented using SQLAlchemy.

    Queries run synchronously on the calling (event loop) thread: a local stand-in
    for the remote ledger, not a shared server.
    """

    def __init__(
        self,
        db_session: Session,
        now: Callable[[], datetime] = utc_now,
        increment_seconds: float = 0.0,
        lobby_ttl_seconds: float = 600.0,
    ) -> None:
        self.db = db_session
        self.now = now
        self.increment_seconds = increment_seconds
        self.lobby_ttl = timedelta(seconds=lobby_ttl_seconds)

    async def close(self) -> None:
        self.db.close()

    # --- queries ---
    async def fetch_session(self, session_id: SessionId) -> RemoteSessionState:
        return self._to_remote_session(self._fetch_session(session_id))

    async def fetch_lobby(self, lobby_id: LobbyId) -> RemoteLobbyState:
        lobby_db = self._fetch_lobby(lobby_id)
        self._expire_if_stale(lobby_db)
        return self._to_remote_lobby(lobby_db)

    async def results_for(self, player: PlayerId) -> list[StatsReportRequest]:
        """Everything recorded for one player, oldest first."""
        query = select(DBResult).where(DBResult.player == player).order_by(DBResult.id)
        return [
            StatsReportRequest(game_kind=r.game_kind, won=r.won, moves=r.moves, player=r.player)
            for r in self.db.scalars(query)
        ]

    # --- sessions ---
    async def create_session(self, request: CreateSessionRequest) -> SessionId:
        """Store new session and return its id."""
        if request.mode == GameMode.BOT:
            players = [request.player, request.opponent or BOT_PLAYER]
        elif request.mode == GameMode.LOCAL:
            players = [request.player, request.opponent or request.player]
        else:
            players = [request.player] + ([request.opponent] if request.opponent else [])
        status = (
            SessionStatus.IN_PROGRESS if len(players) == 2 else SessionStatus.WAITING_FOR_OPPONENT
        )
        return self._insert_session(
            kind=request.kind,
            mode=request.mode,
            players=players,
            status=status,
            seed=request.seed if request.seed is not None else uuid4().int % 2**31,
            time_control=request.time_control,
        )

    async def submit_action(self, request: SubmitActionRequest) -> None:
        """Append one move to the log, after checking it against the replayed position."""
        session_db = self._fetch_session(request.session_id)
        if session_db.status in CLOSED_STATUSES:
            raise LedgerError(f"Session {session_db.id} is {session_db.status}.")
        if session_db.status == SessionStatus.WAITING_FOR_OPPONENT:
            raise LedgerError(f"Session {session_db.id} is still waiting for an opponent.")
        if request.player not in session_db.players:
            raise LedgerError(f"{request.player} does not play in session {session_db.id}.")

        actions = self._fetch_actions(session_db.id)
        now = self.now()
        terminal = Terminal.none()

        if session_db.mode != GameMode.BOT:
            engine = engine_for(session_db.kind)
            position = replay(
                engine, engine.new_position(seed=session_db.seed), self._to_actions(actions)
            )
            seat = engine.to_move(position)
            if seat is None:
                raise LedgerError(f"Nobody can act in session {session_db.id}.")
            if session_db.mode == GameMode.PEER and (
                seat >= len(session_db.players) or session_db.players[seat] != request.player
            ):
                raise LedgerError(f"It is not {request.player}'s turn.")
            if self._overran(session_db, seat, now):
                self._flag(session_db, seat)
                self.db.commit()
                raise LedgerError(f"{request.player} ran out of time, the move comes too late.")
            try:
                position = engine.apply(position, request.move)
            except IllegalMoveError as exc:
                raise LedgerError(f"Rejected move {request.move!r}: {exc}") from exc
            self._charge_clock(session_db, seat, now)
            terminal = engine.terminal(position)

        self.db.add(
            DBAction(
                session_id=session_db.id,
                seq=len(actions),
                player=request.player,
                move=request.move,
            )
        )
        if terminal.is_over:
            self.db.flush()
            winner = (
                session_db.players[terminal.winner]
                if terminal.winner is not None and 0 <= terminal.winner < len(session_db.players)
                else None
            )
            self._close(session_db, SessionStatus.COMPLETED, winner, terminal.reason or terminal.kind)
        self.db.commit()
        logger.debug("Session %s: action %d %r", session_db.id, len(actions), request.move)

    async def resign(self, session_id: SessionId, player: PlayerId) -> None:
        session_db = self._open_session_of(session_id, player)
        self._close(session_db, SessionStatus.COMPLETED, self._opponent_of(session_db, player), "resignation")
        self.db.commit()

    async def offer_draw(self, session_id: SessionId, player: PlayerId) -> None:
        session_db = self._open_session_of(session_id, player)
        session_db.draw_offered_by = player
        self.db.commit()

    async def accept_draw(self, session_id: SessionId, player: PlayerId) -> None:
        session_db = self._open_session_of(session_id, player)
        if session_db.draw_offered_by is None or session_db.draw_offered_by == player:
            raise LedgerError("There is no draw offer from the opponent to accept.")
        self._close(session_db, SessionStatus.COMPLETED, None, "draw by agreement")
        self.db.commit()

    async def claim_timeout(self, session_id: SessionId, player: PlayerId) -> None:
        """Win on time: the opponent is on move and has spent more than their remaining time."""
        session_db = self._open_session_of(session_id, player)
        seat = session_db.players.index(player)
        opponent_seat = 1 - seat
        elapsed = _spent(session_db, self.now())
        if not session_db.time_left[opponent_seat] < elapsed:
            raise LedgerError("The opponent has not run out of time.")
        self._close(session_db, SessionStatus.TIMED_OUT, player, "timeout")
        self.db.commit()

    # --- lobbies ---
    async def create_lobby(self, request: CreateLobbyRequest) -> LobbyId:
        lobby_db = DBLobby(
            id=uuid4().hex[:8],
            creator=request.creator,
            kind=request.kind,
            mode=GameMode.PEER,
            is_public=request.is_public,
            password=request.password,
            status=LobbyStatus.OPEN,
            time_control=request.time_control,
            players=[request.creator],
            expires_at=self.now() + self.lobby_ttl,
        )
        self.db.add(lobby_db)
        self.db.commit()
        self.db.refresh(lobby_db)
        return lobby_db.id

    async def join_lobby(
        self, lobby_id: LobbyId, player: PlayerId, password: Optional[str] = None
    ) -> None:
        """Second player in: the lobby turns into a peer session."""
        lobby_db = self._fetch_lobby(lobby_id)
        self._expire_if_stale(lobby_db)
        if lobby_db.status != LobbyStatus.OPEN:
            raise LedgerError(f"Lobby {lobby_id} is {lobby_db.status}.")
        if player in lobby_db.players:
            raise LedgerError(f"{player} is already in lobby {lobby_id}.")
        if not lobby_db.is_public and lobby_db.password != password:
            raise LedgerError(f"Wrong password for lobby {lobby_id}.")

        players = [*lobby_db.players, player]
        lobby_db.players = players
        lobby_db.session_id = self._insert_session(
            kind=lobby_db.kind,
            mode=GameMode.PEER,
            players=players,
            status=SessionStatus.IN_PROGRESS,
            seed=uuid4().int % 2**31,
            time_control=lobby_db.time_control,
        )
        lobby_db.status = LobbyStatus.STARTED
        self.db.commit()

    async def cancel_lobby(self, lobby_id: LobbyId, player: PlayerId) -> None:
        lobby_db = self._fetch_lobby(lobby_id)
        if lobby_db.creator != player:
            raise LedgerError("Only the creator can cancel a lobby.")
        if lobby_db.status != LobbyStatus.OPEN:
            raise LedgerError(f"Lobby {lobby_id} is {lobby_db.status}.")
        lobby_db.status = LobbyStatus.CANCELLED
        self.db.commit()

    # --- profiles / stats ---
    async def register_profile(self, request: ProfileRequest) -> None:
        profile_db = self.db.get(DBProfile, request.player)
        if profile_db is None:
            self.db.add(
                DBProfile(
                    player=request.player,
                    username=request.username,
                    avatar_url=request.avatar_url,
                )
            )
        else:
            profile_db.username = request.username
            profile_db.avatar_url = request.avatar_url
        self.db.commit()

    async def record_result(self, request: StatsReportRequest) -> None:
        self._add_result(request.player, request.game_kind, request.won, request.moves)
        self.db.commit()

    # --- helpers ---
    def _insert_session(
        self,
        kind: str,
        mode: str,
        players: list[PlayerId],
        status: SessionStatus,
        seed: int,
        time_control: int,
    ) -> SessionId:
        session_db = DBSession(
            id=str(uuid4()),
            kind=kind,
            mode=mode,
            status=status,
            players=players,
            winner=None,
            seed=seed,
            time_control=time_control,
            increment=int(self.increment_seconds),
            time_left=[float(time_control), float(time_control)],
            turn_started_at=self.now(),
            draw_offered_by=None,
        )
        self.db.add(session_db)
        self.db.commit()
        self.db.refresh(session_db)
        return session_db.id

    def _overran(self, session_db: DBSession, seat: int, now: datetime) -> bool:
        if seat > 1:
            return False
        return _spent(session_db, now) > session_db.time_left[seat]

    def _flag(self, session_db: DBSession, seat: int) -> None:
        """`seat` is out of time: empty its clock, the opponent wins."""
        time_left = list(session_db.time_left)
        time_left[seat] = 0.0
        session_db.time_left = time_left
        players = session_db.players
        winner = players[1 - seat] if len(players) > 1 else None
        self._close(session_db, SessionStatus.TIMED_OUT, winner, "timeout")

    def _charge_clock(self, session_db: DBSession, seat: int, now: datetime) -> None:
        """Take the thinking time off the mover's clock, credit the increment, restart the turn timer."""
        if seat > 1:
            return
        time_left = list(session_db.time_left)
        time_left[seat] = time_left[seat] - _spent(session_db, now) + session_db.increment
        session_db.time_left = time_left
        session_db.turn_started_at = now

    def _close(
        self, session_db: DBSession, status: SessionStatus, winner: Optional[PlayerId], reason: str
    ) -> None:
        session_db.status = status
        session_db.winner = winner
        session_db.reason = reason
        session_db.draw_offered_by = None
        if session_db.mode == GameMode.PEER:
            moves = self.db.scalar(
                select(func.count()).select_from(DBAction).where(DBAction.session_id == session_db.id)
            )
            for player in session_db.players:
                self._add_result(player, session_db.kind, player == winner, moves or 0)
        logger.info("Session %s closed: %s (%s)", session_db.id, status, reason)

    def _add_result(self, player: PlayerId, game_kind: str, won: bool, moves: int) -> None:
        self.db.add(DBResult(player=player, game_kind=game_kind, won=won, moves=moves))

    def _open_session_of(self, session_id: SessionId, player: PlayerId) -> DBSession:
        session_db = self._fetch_session(session_id)
        if session_db.status != SessionStatus.IN_PROGRESS:
            raise LedgerError(f"Session {session_id} is {session_db.status}.")
        if player not in session_db.players:
            raise LedgerError(f"{player} does not play in session {session_id}.")
        return session_db

    @staticmethod
    def _opponent_of(session_db: DBSession, player: PlayerId) -> Optional[PlayerId]:
        others = [p for p in session_db.players if p != player]
        return others[0] if others else None

    def _expire_if_stale(self, lobby_db: DBLobby) -> None:
        if lobby_db.status == LobbyStatus.OPEN and self.now() > _aware(lobby_db.expires_at):
            lobby_db.status = LobbyStatus.EXPIRED
            self.db.commit()

    def _fetch_session(self, session_id: SessionId) -> DBSession:
        session_db = self.db.scalar(select(DBSession).where(DBSession.id == session_id))
        if session_db is None:
            raise RepositoryError(f"No session with id {session_id}.")
        return session_db

    def _fetch_lobby(self, lobby_id: LobbyId) -> DBLobby:
        lobby_db = self.db.scalar(select(DBLobby).where(DBLobby.id == lobby_id))
        if lobby_db is None:
            raise RepositoryError(f"No lobby with id {lobby_id}.")
        return lobby_db

    def _fetch_actions(self, session_id: SessionId) -> list[DBAction]:
        query = select(DBAction).where(DBAction.session_id == session_id).order_by(DBAction.seq)
        return list(self.db.scalars(query))

    @staticmethod
    def _to_actions(actions: list[DBAction]) -> list[Action]:
        return [Action(a.seq, a.player, a.move) for a in actions]

    def _to_remote_session(self, session_db: DBSession) -> RemoteSessionState:
        """Convert SQLAlchemy model to the wire model clients see."""
        return RemoteSessionState(
            session_id=session_db.id,
            kind=session_db.kind,
            mode=session_db.mode,
            status=session_db.status,
            players=session_db.players,
            winner=session_db.winner,
            reason=session_db.reason,
            seed=session_db.seed,
            time_control=session_db.time_control,
            draw_offered_by=session_db.draw_offered_by,
            actions=[
                RemoteAction(seq=a.seq, player=a.player, move=a.move)
                for a in self._fetch_actions(session_db.id)
            ],
        )

    @staticmethod
    def _to_remote_lobby(lobby_db: DBLobby) -> RemoteLobbyState:
        return RemoteLobbyState(
            lobby_id=lobby_db.id,
            creator=lobby_db.creator,
            kind=lobby_db.kind,
            mode=lobby_db.mode,
            is_public=lobby_db.is_public,
            status=lobby_db.status,
            time_control=lobby_db.time_control,
            players=lobby_db.players,
            session_id=lobby_db.session_id,
        )


def _aware(moment: datetime) -> datetime:
    """SQLite hands datetimes back without tzinfo; everything here is UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=utc_now().tzinfo)
    return moment


def _spent(session_db: DBSession, now: datetime) -> float:
    """Seconds since the player on move got the turn."""
    return (now - _aware(session_db.turn_started_at)).total_seconds()
