"""
Per-seat game clock.

Only the active seat's time runs. The clock switches on every successfully applied action
and stops for good once the game is over. Reaching zero flags the active seat (timeout).
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from arcade.core.models import Seat, Terminal
from arcade.core.shared_types import TerminalKind

logger = logging.getLogger(__name__)

NUM_SEATS = 2


@dataclass(frozen=True)
class ClockSnapshot:
    remaining: tuple[float, ...]
    active: Optional[Seat]
    running: bool
    flagged: Optional[Seat]


@dataclass
class Clock:
    start_seconds: float = 300.0
    increment_seconds: float = 0.0
    num_seats: int = NUM_SEATS
    remaining: list[float] = field(default_factory=list)
    active: Optional[Seat] = None
    running: bool = False
    flagged: Optional[Seat] = None
    stopped: bool = False

    def __post_init__(self) -> None:
        if not self.remaining:
            self.remaining = [self.start_seconds] * self.num_seats

    def start(self, seat: Seat) -> None:
        if self.stopped:
            return
        self.active = seat
        self.running = True

    def switch_to(self, seat: Optional[Seat]) -> None:
        """The previous active seat completed a move: credit the increment and run the other clock."""
        if self.stopped or self.flagged is not None:
            return
        if self.active is not None and self.active != seat:
            self.remaining[self.active] += self.increment_seconds
        self.active = seat
        if seat is None:
            self.running = False
        elif not self.running:
            self.running = True

    def hand_to(self, seat: Optional[Seat]) -> None:
        """Point the clock at `seat` without crediting an increment (log rebuilt from the ledger)."""
        if self.stopped or self.flagged is not None:
            return
        self.active = seat
        if seat is None:
            self.running = False

    def pause(self) -> None:
        """Blocking modal opened: freeze, keep the active seat."""
        self.running = False

    def resume(self) -> None:
        if self.stopped or self.flagged is not None or self.active is None:
            return
        self.running = True

    def stop(self) -> None:
        """Game over. Nothing restarts a stopped clock."""
        self.running = False
        self.stopped = True

    def tick(self, elapsed: float) -> Optional[Terminal]:
        """
        Charge `elapsed` seconds to the active seat.

        Returns the timeout terminal when this tick flags the active seat, None otherwise.
        """
        if not self.running or self.active is None:
            return None
        seat = self.active
        self.remaining[seat] = max(self.remaining[seat] - elapsed, 0.0)
        if self.remaining[seat] > 0:
            return None

        self.flagged = seat
        self.stop()
        logger.info("Seat %s ran out of time", seat)
        return self.timeout_terminal()

    def timeout_terminal(self) -> Optional[Terminal]:
        if self.flagged is None:
            return None
        winner = (self.flagged + 1) % self.num_seats
        return Terminal(TerminalKind.TIMEOUT, winner=winner, reason=f"seat {self.flagged} flagged")

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(
            remaining=tuple(self.remaining),
            active=self.active,
            running=self.running,
            flagged=self.flagged,
        )
