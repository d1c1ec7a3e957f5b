"""Orchestration of communication from the client surfaces to the game logic, the sync layer and the ledger (and the reverse direction)."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from arcade.api.models import (
    ClockView,
    CreateLobbyRequest,
    JoinLobbyRequest,
    PlayRequest,
    SessionView,
    StartSessionRequest,
)
from arcade.bots.decision import BotDecisionClient
from arcade.bots.prompts import Difficulty
from arcade.bots.suggestion import suggestion_client_from_settings
from arcade.clock.clock import Clock
from arcade.clock.ticker import ClockTicker
from arcade.core.config import Settings, configure_logging
from arcade.core.exceptions import GameError, GameStateError, LedgerError, NotYourTurnError
from arcade.core.models import PlayerId, Seat, Terminal
from arcade.core.shared_types import GameKind, GameMode, TerminalKind
from arcade.ledger import models as wire
from arcade.db.database import make_session_factory
from arcade.db.sql_ledger import SQLLedger
from arcade.ledger.client import GraphQLLedgerClient, LedgerClient
from arcade.session.lobby import LobbyBridge
from arcade.session.notifier import LoggingNotifier, Notifier
from arcade.session.session import GameSession
from arcade.session.stats import StatsReporter
from arcade.sync.actor import SessionActor
from arcade.sync.executor import OptimisticExecutor
from arcade.sync.poller import ReconciliationPoller

logger = logging.getLogger(__name__)

# Games with a two-seat chess clock
TIMED_GAMES = frozenset({GameKind.CHESS, GameKind.POKER})


@dataclass
class _Runtime:
    """Everything attached to one open session. Torn down together."""

    session: GameSession
    actor: SessionActor
    executor: OptimisticExecutor
    poller: ReconciliationPoller
    ticker: Optional[ClockTicker] = None
    bot_task: Optional[asyncio.Task] = None
    reported: bool = False


class ArcadeService:
    """Orchestration of layers for all three games."""

    def __init__(
        self,
        ledger: LedgerClient,
        settings: Optional[Settings] = None,
        bot: Optional[BotDecisionClient] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.ledger = ledger
        self.settings = settings or Settings()
        self.bot = bot or BotDecisionClient(think_delay=self.settings.bot_think_delay_seconds)
        self.notifier = notifier or LoggingNotifier()
        self.stats = StatsReporter(ledger)
        self.lobbies = LobbyBridge(
            ledger,
            interval=self.settings.lobby_poll_interval_seconds,
            max_attempts=self.settings.lobby_max_attempts,
        )
        self._runtimes: dict[str, _Runtime] = {}
        # ledger built by from_settings, closed together with the service
        self._owned_ledger: Optional[GraphQLLedgerClient | SQLLedger] = None

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, notifier: Optional[Notifier] = None
    ) -> "ArcadeService":
        """
        Service wired from configuration (ARCADE_* environment variables by default):
        logging, the GraphQL or SQL-backed ledger and the bot with the configured suggestion service.
        """
        settings = settings or Settings.from_env()
        configure_logging(settings)
        ledger: GraphQLLedgerClient | SQLLedger
        if settings.ledger_backend == "sql":
            ledger = SQLLedger(
                make_session_factory(settings.database_url)(),
                increment_seconds=settings.clock_increment_seconds,
                lobby_ttl_seconds=settings.lobby_ttl_seconds,
            )
        else:
            ledger = GraphQLLedgerClient(
                settings.ledger_endpoint, timeout_seconds=settings.ledger_timeout_seconds
            )
        bot = BotDecisionClient(
            suggestion_client_from_settings(settings),
            difficulty=Difficulty(settings.bot_difficulty),
            think_delay=settings.bot_think_delay_seconds,
        )
        service = cls(ledger, settings, bot=bot, notifier=notifier)
        service._owned_ledger = ledger
        logger.info("Arcade service ready (%s ledger)", settings.ledger_backend)
        return service

    # -- session lifecycle ---
    async def start_session(self, request: StartSessionRequest) -> SessionView:
        """Create the session on the ledger and open it locally."""
        session_id = await self.ledger.create_session(
            wire.CreateSessionRequest(
                kind=request.kind,
                mode=request.mode,
                player=request.player,
                opponent=request.opponent,
                seed=request.seed,
                time_control=self._time_control(request.time_control),
            )
        )
        remote = await self.ledger.fetch_session(session_id)
        options: dict[str, Any] = {"seed": remote.seed}
        if request.starting_fen is not None:
            options["fen"] = request.starting_fen
        if request.kind == GameKind.BLACKJACK:
            options["player_name"] = request.player
        runtime = self._open(remote, request.player, **options)
        # a blackjack deal can settle on the spot
        await self._after_change(runtime)
        self._schedule_bots(runtime)
        return self.view(session_id)

    async def create_lobby(self, request: CreateLobbyRequest) -> str:
        return await self.ledger.create_lobby(
            wire.CreateLobbyRequest(
                kind=request.kind,
                creator=request.player,
                is_public=request.is_public,
                password=request.password,
                time_control=self._time_control(request.time_control),
            )
        )

    async def cancel_lobby(self, lobby_id: str, player: PlayerId) -> None:
        await self.ledger.cancel_lobby(lobby_id, player)

    async def join_lobby(self, request: JoinLobbyRequest) -> SessionView:
        """Second player: join, then wait for the lobby to name its session."""
        await self.ledger.join_lobby(request.lobby_id, request.player, request.password)
        return await self.wait_for_lobby(request.lobby_id, request.player)

    async def wait_for_lobby(self, lobby_id: str, player: PlayerId) -> SessionView:
        """
        Lobby creator (or joiner): resolve the lobby into its session and open it.
        ----
        Raises LobbyClosedError / LobbyResolutionTimeout, the player may retry or cancel.
        """
        session_id = await self.lobbies.resolve(lobby_id)
        if session_id not in self._runtimes:
            remote = await self.ledger.fetch_session(session_id)
            self._open(remote, player, seed=remote.seed)
        return self.view(session_id)

    async def end_session(self, session_id: str) -> None:
        """Player navigated away: stop every timer / task of the session. The remote copy lives on."""
        runtime = self._runtimes.pop(session_id, None)
        if runtime is None:
            return
        await runtime.poller.stop()
        if runtime.ticker is not None:
            await runtime.ticker.stop()
        await runtime.session.close()
        await runtime.actor.stop()
        logger.info("Session %s ended locally", session_id)

    async def register_profile(self, player: PlayerId, username: str, avatar_url: str = "") -> None:
        await self.ledger.register_profile(
            wire.ProfileRequest(player=player, username=username, avatar_url=avatar_url)
        )

    async def close(self) -> None:
        for session_id in list(self._runtimes):
            await self.end_session(session_id)
        if self._owned_ledger is not None:
            await self._owned_ledger.close()
            self._owned_ledger = None

    # -- game play ---
    async def play(self, request: PlayRequest) -> SessionView:
        """
        Local player's move: applied at once, submitted in the background.
        Bot replies (bot mode) are scheduled after it.
        """
        runtime = self._runtime(request.session_id)
        await runtime.executor.play(request.move, request.seat)
        await self._after_change(runtime)
        self._schedule_bots(runtime)
        return self.view(request.session_id)

    async def wait_idle(self, session_id: str) -> SessionView:
        """Wait for the bot to finish its turn(s) and for pending submissions."""
        runtime = self._runtime(session_id)
        if runtime.bot_task is not None:
            await runtime.bot_task
        await runtime.executor.drain()
        return self.view(session_id)

    async def poll(self, session_id: str) -> SessionView:
        """One reconciliation round right now (instead of waiting for the poller)."""
        runtime = self._runtime(session_id)
        await runtime.poller.poll_once()
        await self._after_change(runtime)
        return self.view(session_id)

    async def resign(self, session_id: str, player: PlayerId) -> SessionView:
        runtime = self._runtime(session_id)
        seat = self._local_seat_of(runtime.session, player)
        if runtime.session.kind not in TIMED_GAMES:
            raise GameStateError(f"A {runtime.session.kind} hand cannot be resigned.")
        if runtime.session.terminal.is_over:
            raise GameStateError("The game is over.")
        winner = (seat + 1) % 2
        await runtime.actor.call(
            GameSession.finish, Terminal(TerminalKind.RESIGNATION, winner, f"{player} resigned")
        )
        await self._tell_ledger(runtime, self.ledger.resign, player)
        await self._after_change(runtime)
        return self.view(session_id)

    async def offer_draw(self, session_id: str, player: PlayerId) -> SessionView:
        runtime = self._runtime(session_id)
        self._local_seat_of(runtime.session, player)
        await runtime.actor.call(_offer_draw, player)
        await self._tell_ledger(runtime, self.ledger.offer_draw, player)
        return self.view(session_id)

    async def accept_draw(self, session_id: str, player: PlayerId) -> SessionView:
        runtime = self._runtime(session_id)
        self._local_seat_of(runtime.session, player)
        await runtime.actor.call(_accept_draw, player)
        await self._tell_ledger(runtime, self.ledger.accept_draw, player)
        await self._after_change(runtime)
        return self.view(session_id)

    async def claim_timeout(self, session_id: str, player: PlayerId) -> SessionView:
        """Tell the ledger that the opponent's flag fell (the local clock already ended the game)."""
        runtime = self._runtime(session_id)
        seat = self._local_seat_of(runtime.session, player)
        terminal = runtime.session.terminal
        if terminal.kind != TerminalKind.TIMEOUT or terminal.winner != seat:
            raise GameStateError("The opponent has not run out of time.")
        await self._tell_ledger(runtime, self.ledger.claim_timeout, player)
        return self.view(session_id)

    async def pause_clock(self, session_id: str) -> SessionView:
        """Blocking modal opened."""
        runtime = self._runtime(session_id)
        await runtime.actor.call(GameSession.pause_clock)
        return self.view(session_id)

    async def resume_clock(self, session_id: str) -> SessionView:
        runtime = self._runtime(session_id)
        await runtime.actor.call(GameSession.resume_clock)
        return self.view(session_id)

    # -- views ---
    def view(self, session_id: str) -> SessionView:
        session = self._runtime(session_id).session
        clock = None
        if session.clock is not None:
            snapshot = session.clock.snapshot()
            clock = ClockView(
                remaining=list(snapshot.remaining), active=snapshot.active, running=snapshot.running
            )
        return SessionView(
            session_id=session.session_id,
            kind=session.kind,
            mode=session.mode,
            players=session.players,
            local_seats=sorted(session.local_seats),
            summary=summarize(session),
            to_move=session.to_move,
            legal_actions=session.legal_actions() if session.is_local_turn else [],
            move_history=[action.move for action in session.actions],
            applied=session.applied,
            confirmed=session.confirmed,
            terminal=session.terminal.kind,
            winner=session.terminal.winner,
            reason=session.terminal.reason,
            clock=clock,
            draw_offered_by=session.draw_offered_by,
        )

    def session(self, session_id: str) -> GameSession:
        return self._runtime(session_id).session

    # -- Internal helpers --
    def _open(self, remote: wire.RemoteSessionState, player: PlayerId, **options: Any) -> _Runtime:
        """Local session for `remote`, with actor, poller and (for timed games) the clock ticker."""
        if remote.mode == GameMode.PEER:
            if player not in remote.players:
                raise GameStateError(f"{player} does not play in session {remote.session_id}.")
            local_seats = {remote.players.index(player)}
        elif remote.mode == GameMode.LOCAL:
            local_seats = {0, 1}
        else:
            local_seats = {0}

        clock = None
        if remote.kind in TIMED_GAMES:
            clock = Clock(
                start_seconds=float(remote.time_control),
                increment_seconds=self.settings.clock_increment_seconds,
            )
        session = GameSession.start(
            session_id=remote.session_id,
            kind=remote.kind,
            mode=remote.mode,
            players=remote.players,
            local_seats=local_seats,
            clock=clock,
            **options,
        )
        actor = SessionActor(session)
        actor.start()
        runtime = _Runtime(
            session=session,
            actor=actor,
            executor=OptimisticExecutor(actor, self.ledger, self.notifier),
            poller=ReconciliationPoller(actor, self.ledger, interval=self.settings.poll_interval_seconds),
        )
        self._runtimes[session.session_id] = runtime

        # a joining peer may find moves already on the ledger
        if remote.mode != GameMode.BOT and remote.actions:
            session.rebuild(remote.log())
            session.confirmed = session.applied

        session.attach(runtime.poller.start())
        if clock is not None:
            runtime.ticker = ClockTicker(
                lambda elapsed: self._on_tick(runtime, elapsed),
                interval=self.settings.clock_tick_seconds,
            )
            runtime.ticker.start()
        logger.info(
            "Opened %s session %s (%s) for %s", remote.kind, remote.session_id, remote.mode, player
        )
        return runtime

    async def _on_tick(self, runtime: _Runtime, elapsed: float) -> bool:
        try:
            await runtime.actor.call(GameSession.tick, elapsed)
        except GameStateError:
            return False
        if runtime.session.terminal.is_over:
            await self._after_change(runtime)
            return False
        return True

    def _schedule_bots(self, runtime: _Runtime) -> None:
        session = runtime.session
        if session.mode != GameMode.BOT or session.terminal.is_over or session.is_local_turn:
            return
        if runtime.bot_task is not None and not runtime.bot_task.done():
            return
        runtime.bot_task = asyncio.get_running_loop().create_task(self._drive_bots(runtime))
        session.attach(runtime.bot_task)

    async def _drive_bots(self, runtime: _Runtime) -> None:
        """Bot seats move until a local seat is on move again (or the game is over)."""
        session = runtime.session
        while not session.closed and not session.terminal.is_over and not session.is_local_turn:
            await self.bot.think()
            if session.closed or session.terminal.is_over:
                break
            if session.kind == GameKind.BLACKJACK:
                decision = self.bot.decide_blackjack_seat(session.position)
            else:
                decision = await self.bot.decide(session.kind, session.position)
            try:
                await runtime.executor.play_bot(decision.move)
            except GameError as exc:
                logger.warning("Session %s: bot move %r rejected: %s", session.session_id, decision.move, exc)
                break
            logger.debug("Session %s: bot played %s (%s)", session.session_id, decision.move, decision.source)
        await self._after_change(runtime)

    async def _after_change(self, runtime: _Runtime) -> None:
        """Once per session: the bot-mode result goes to the stats mutation."""
        session = runtime.session
        if not session.terminal.is_over or runtime.reported:
            return
        runtime.reported = True
        if session.mode == GameMode.BOT:
            await self.stats.report(session, seat=0)

    async def _tell_ledger(self, runtime: _Runtime, call: Any, player: PlayerId) -> None:
        try:
            await call(runtime.session.session_id, player)
        except LedgerError as exc:
            logger.warning("Session %s: ledger call failed: %s", runtime.session.session_id, exc)
            self.notifier.notify(runtime.session.session_id, f"The ledger did not take it yet: {exc}")

    @staticmethod
    def _local_seat_of(session: GameSession, player: PlayerId) -> Seat:
        seat = session.seat_of(player)
        if seat is None or seat not in session.local_seats:
            raise NotYourTurnError(f"{player} does not play on this device.")
        return seat

    def _time_control(self, requested: Optional[int]) -> int:
        if requested is not None:
            return requested
        return int(self.settings.clock_start_seconds)

    def _runtime(self, session_id: str) -> _Runtime:
        runtime = self._runtimes.get(session_id)
        if runtime is None:
            raise GameStateError(f"Session {session_id} is not open.")
        return runtime


def _offer_draw(session: GameSession, player: PlayerId) -> None:
    if session.terminal.is_over:
        raise GameStateError("The game is over.")
    session.draw_offered_by = player


def _accept_draw(session: GameSession, player: PlayerId) -> None:
    if session.draw_offered_by is None or session.draw_offered_by == player:
        raise GameStateError("There is no draw offer from the opponent to accept.")
    session.draw_offered_by = None
    session.finish(Terminal(TerminalKind.DRAW, None, "draw by agreement"))


def summarize(session: GameSession) -> str:
    """One line describing the position, without anything the local player may not see."""
    position = session.position
    if session.kind == GameKind.CHESS:
        return position.fen
    if session.kind == GameKind.POKER:
        seat = min(session.local_seats)
        board = " ".join(str(card) for card in position.board) or "-"
        own = " ".join(str(card) for card in position.hole_cards(seat))
        return f"{position.street.label} | board {board} | pot {position.pot} | your cards {own}"
    dealer = " ".join(str(card) for card in position.dealer_visible())
    hand = " ".join(str(card) for card in position.hands[0])
    return f"dealer {dealer} | your hand {hand} ({position.value(0).total})"
