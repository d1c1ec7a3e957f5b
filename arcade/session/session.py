"""
One game instance as this client sees it.

A GameSession owns its Position, action log, clock and background tasks. It is only mutated from inside
its SessionActor (see arcade.sync.actor), which is what keeps optimistic applies and remote replays
from interleaving.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from arcade.clock.clock import Clock
from arcade.core.exceptions import GameStateError, NotYourTurnError
from arcade.core.models import BOT_PLAYER, Action, PlayerId, Seat, Terminal
from arcade.core.rules import Position, RuleEngine, replay
from arcade.core.shared_types import GameKind, GameMode, TerminalKind
from arcade.engines import engine_for

logger = logging.getLogger(__name__)

# Terminals a rule engine can derive from the action log alone
RULE_TERMINALS = frozenset(
    {
        TerminalKind.CHECKMATE,
        TerminalKind.STALEMATE,
        TerminalKind.DRAW,
        TerminalKind.FOLD,
        TerminalKind.SHOWDOWN,
        TerminalKind.SETTLED,
    }
)


@dataclass
class GameSession:
    session_id: str
    kind: GameKind
    mode: GameMode
    players: list[PlayerId]  # seat order
    local_seats: frozenset[Seat]
    engine: RuleEngine
    initial_position: Position
    position: Position
    actions: list[Action] = field(default_factory=list)
    confirmed: int = 0  # actions the remote log is known to contain
    terminal: Terminal = field(default_factory=Terminal.none)
    clock: Optional[Clock] = None
    draw_offered_by: Optional[PlayerId] = None
    closed: bool = False
    tasks: list[asyncio.Task] = field(default_factory=list)

    @classmethod
    def start(
        cls,
        session_id: str,
        kind: GameKind,
        mode: GameMode,
        players: list[PlayerId],
        local_seats: Iterable[Seat],
        clock: Optional[Clock] = None,
        **options: Any,
    ) -> "GameSession":
        """New session at the initial position of `kind` (`options` go to the engine, e.g. seed)."""
        engine = engine_for(kind)
        initial = engine.new_position(**options)
        session = cls(
            session_id=session_id,
            kind=GameKind(kind),
            mode=GameMode(mode),
            players=list(players),
            local_seats=frozenset(local_seats),
            engine=engine,
            initial_position=initial,
            position=initial,
            clock=clock,
        )
        session.terminal = engine.terminal(initial)
        if session.clock is not None:
            if session.terminal.is_over:
                session.clock.stop()
            else:
                session.clock.start(engine.to_move(initial))
        return session

    # --- reads ---
    @property
    def applied(self) -> int:
        """Number of actions reflected in the local position."""
        return len(self.actions)

    @property
    def pending(self) -> list[Action]:
        """Optimistically applied actions the remote log does not show yet."""
        return self.actions[self.confirmed :]

    @property
    def to_move(self) -> Optional[Seat]:
        if self.terminal.is_over:
            return None
        return self.engine.to_move(self.position)

    @property
    def is_local_turn(self) -> bool:
        return self.to_move in self.local_seats

    def legal_actions(self) -> list[str]:
        if self.terminal.is_over:
            return []
        return self.engine.legal_actions(self.position)

    def player_for(self, seat: Seat) -> PlayerId:
        if 0 <= seat < len(self.players):
            return self.players[seat]
        return BOT_PLAYER

    def seat_of(self, player: PlayerId) -> Optional[Seat]:
        try:
            return self.players.index(player)
        except ValueError:
            return None

    # --- mutations (actor only) ---
    def apply_local(self, move: str, seat: Optional[Seat] = None) -> Action:
        """
        Validate and apply a move made on this device.

        `seat`, when given, must be the seat on move. IllegalMoveError leaves the session untouched.
        """
        if self.closed or self.terminal.is_over:
            raise GameStateError(f"Session {self.session_id} is over.")
        on_move = self.engine.to_move(self.position)
        if on_move is None:
            raise GameStateError(f"Nobody can act in session {self.session_id}.")
        if seat is not None and seat != on_move:
            raise NotYourTurnError(f"Seat {seat} tried to act, seat {on_move} is on move.")
        position = self.engine.apply(self.position, move)
        action = Action(self.applied, self.player_for(on_move), move)
        self._commit(position, action)
        return action

    def apply_remote(self, action: Action) -> None:
        """Replay one action of the remote log (it must be the next one)."""
        if action.seq != self.applied:
            raise GameStateError(f"Expected action {self.applied}, got {action.seq}.")
        self._commit(self.engine.apply(self.position, action.move), action)

    def rebuild(self, actions: list[Action]) -> None:
        """Throw away the local log and derive everything from `actions` (the remote's)."""
        self.position = replay(self.engine, self.initial_position, actions)
        self.actions = list(actions)
        if self.terminal.kind in RULE_TERMINALS:
            self.terminal = Terminal.none()
        if not self.terminal.is_over:
            self._check_rule_terminal()
        if self.clock is not None and not self.terminal.is_over:
            self.clock.hand_to(self.engine.to_move(self.position))

    def tick(self, elapsed: float) -> Optional[Terminal]:
        """Clock tick. A flag fall wins over any rule terminal of the same moment."""
        if self.terminal.is_over or self.clock is None:
            return None
        timeout = self.clock.tick(elapsed)
        if timeout is not None:
            self.finish(timeout)
            return timeout
        return self._check_rule_terminal()

    def finish(self, terminal: Terminal) -> None:
        if self.terminal.is_over:
            return
        self.terminal = terminal
        if self.clock is not None:
            self.clock.stop()
        logger.info("Session %s over: %s %s", self.session_id, terminal.kind, terminal.reason)

    def pause_clock(self) -> None:
        if self.clock is not None:
            self.clock.pause()

    def resume_clock(self) -> None:
        if self.clock is not None and not self.terminal.is_over:
            self.clock.resume()

    # --- lifecycle ---
    def attach(self, task: asyncio.Task) -> None:
        self.tasks.append(task)

    async def close(self) -> None:
        """Stop the clock and cancel every attached background task."""
        if self.closed:
            return
        self.closed = True
        if self.clock is not None:
            self.clock.stop()
        current = asyncio.current_task()
        tasks = [task for task in self.tasks if task is not current]
        self.tasks = []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # --- helpers ---
    def _commit(self, position: Position, action: Action) -> None:
        self.position = position
        self.actions.append(action)
        if self._check_rule_terminal() is None and self.clock is not None:
            self.clock.switch_to(self.engine.to_move(position))

    def _check_rule_terminal(self) -> Optional[Terminal]:
        terminal = self.engine.terminal(self.position)
        if not terminal.is_over:
            return None
        self.finish(terminal)
        return terminal
