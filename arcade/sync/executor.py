"""
Optimistic execution: apply locally now, tell the ledger later.

The move is validated and applied through the session actor and returned immediately; submitting it to the
ledger happens in a background task. A failed submission is logged and shown as a notice, the local
state is NOT rolled back (the next reconciliation decides).
"""

import asyncio
import logging
from typing import Optional

from arcade.core.exceptions import LedgerError, NotYourTurnError
from arcade.core.models import Action, Seat
from arcade.ledger.client import LedgerClient
from arcade.ledger.models import SubmitActionRequest
from arcade.session.notifier import LoggingNotifier, Notifier
from arcade.session.session import GameSession
from arcade.sync.actor import SessionActor

logger = logging.getLogger(__name__)


class OptimisticExecutor:
    def __init__(
        self,
        actor: SessionActor,
        ledger: LedgerClient,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.actor = actor
        self.ledger = ledger
        self.notifier = notifier or LoggingNotifier()
        self._submissions: set[asyncio.Task] = set()

    @property
    def session(self) -> GameSession:
        return self.actor.session

    async def play(self, move: str, seat: Optional[Seat] = None) -> Action:
        """
        Apply `move` of a player on this device for the seat on move (or for `seat`, which then has to be on move).

        The ownership check runs inside the actor, together with the apply, so two racing calls
        cannot act for a seat of the opponent.
        Raises IllegalMoveError / NotYourTurnError / GameStateError without touching the session.
        """
        action = await self.actor.call(_apply_local, move, seat)
        self._spawn_submission(action)
        return action

    async def play_bot(self, move: str) -> Action:
        """Apply a bot seat's move. It stays local, the ledger only records the human's moves."""
        return await self.actor.call(_apply_bot, move)

    async def drain(self) -> None:
        """Wait for all in-flight submissions (used on teardown and in tests)."""
        if self._submissions:
            await asyncio.gather(*list(self._submissions), return_exceptions=True)

    def _spawn_submission(self, action: Action) -> None:
        task = asyncio.get_running_loop().create_task(self._submit(action))
        self._submissions.add(task)
        task.add_done_callback(self._submissions.discard)

    async def _submit(self, action: Action) -> None:
        request = SubmitActionRequest(
            session_id=self.session.session_id,
            player=action.player,
            move=action.move,
        )
        try:
            await self.ledger.submit_action(request)
        except LedgerError as exc:
            logger.warning(
                "Session %s: submitting action %d (%r) failed: %s",
                self.session.session_id,
                action.seq,
                action.move,
                exc,
            )
            self.notifier.notify(self.session.session_id, f"Move {action.move} was not confirmed yet: {exc}")
            return
        logger.debug("Session %s: submitted action %d", self.session.session_id, action.seq)


def _apply_local(session: GameSession, move: str, seat: Optional[Seat]) -> Action:
    """Actor command: apply a move made on this device, only while one of its seats is on move."""
    on_move = session.to_move
    # nobody on move: apply_local reports the finished session
    if on_move is not None and (on_move not in session.local_seats or (seat is not None and seat not in session.local_seats)):
        raise NotYourTurnError(f"Seat {on_move} is on move, not a seat of this device.")
    return session.apply_local(move, seat)


def _apply_bot(session: GameSession, move: str) -> Action:
    """Actor command: apply a bot seat's move, never for a seat of this device."""
    if session.is_local_turn:
        raise NotYourTurnError("A local seat is on move, the bot has to wait.")
    return session.apply_local(move)
