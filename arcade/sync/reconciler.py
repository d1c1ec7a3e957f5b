"""
Merging the remote session record into the local session.

Rules:
* The remote log is the truth. The local log may only be ahead of it (optimistic actions not confirmed yet).
* If the common prefix differs, the local position is rebuilt from the initial position and the remote log.
* Otherwise only the suffix beyond the locally applied count is replayed, so merging the same remote
  state twice changes nothing.
* A closed remote status (resignation, timeout claim, cancellation) ends the session even when the
  local position is not terminal.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from arcade.core.exceptions import GameError
from arcade.core.models import Action, Terminal
from arcade.core.shared_types import GameMode, SessionStatus, TerminalKind
from arcade.ledger.models import RemoteSessionState
from arcade.session.session import GameSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    replayed: int = 0
    rebuilt: bool = False
    terminal: bool = False


def remote_terminal(session: GameSession, remote: RemoteSessionState) -> Terminal:
    """Terminal implied by a closed remote status."""
    winner = session.seat_of(remote.winner) if remote.winner else None
    if remote.status == SessionStatus.TIMED_OUT:
        return Terminal(TerminalKind.TIMEOUT, winner, remote.reason or "timeout claimed")
    if remote.status == SessionStatus.CANCELLED:
        return Terminal(TerminalKind.CANCELLED, None, remote.reason or "cancelled")
    if remote.reason in {kind.value for kind in TerminalKind}:
        return Terminal(TerminalKind(remote.reason), winner, remote.reason)
    if winner is None:
        return Terminal(TerminalKind.DRAW, None, remote.reason or "draw")
    return Terminal(TerminalKind.RESIGNATION, winner, remote.reason or "resignation")


class Reconciler:
    def merge(self, session: GameSession, remote: RemoteSessionState) -> MergeResult:
        """Bring `session` in line with `remote`. Must run inside the session's actor."""
        if session.closed:
            return MergeResult()
        rebuilt = False
        replayed = 0

        # bot sessions: the remote log only holds the human's moves, there is nothing to replay
        if session.mode != GameMode.BOT:
            remote_log = remote.log()
            diverged_at = _first_divergence(session.actions, remote_log)
            if diverged_at is not None:
                logger.warning(
                    "Session %s diverged from the remote log at action %d, rebuilding",
                    session.session_id,
                    diverged_at,
                )
                try:
                    session.rebuild(remote_log)
                    rebuilt = True
                except GameError as exc:
                    logger.warning("Session %s: remote log does not replay: %s", session.session_id, exc)
            else:
                replayed = self._replay_suffix(session, remote_log)
            session.confirmed = min(len(remote_log), session.applied)

        session.draw_offered_by = remote.draw_offered_by
        if remote.is_closed and not session.terminal.is_over:
            session.finish(remote_terminal(session, remote))
        return MergeResult(replayed=replayed, rebuilt=rebuilt, terminal=session.terminal.is_over)

    @staticmethod
    def _replay_suffix(session: GameSession, remote_log: list[Action]) -> int:
        replayed = 0
        for action in remote_log[session.applied :]:
            try:
                session.apply_remote(action)
            except GameError as exc:
                logger.warning(
                    "Session %s: cannot replay remote action %d (%r): %s",
                    session.session_id,
                    action.seq,
                    action.move,
                    exc,
                )
                break
            logger.debug("Session %s: replayed remote action %d %r", session.session_id, action.seq, action.move)
            replayed += 1
        return replayed


def _first_divergence(local: list[Action], remote: list[Action]) -> Optional[int]:
    for index, (mine, theirs) in enumerate(zip(local, remote)):
        if mine.move != theirs.move:
            return index
    return None
