"""Periodic reconciliation with the ledger. The interval is the latency bound of remote moves."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from arcade.core.exceptions import GameStateError, LedgerError
from arcade.ledger.client import LedgerClient
from arcade.sync.actor import SessionActor
from arcade.sync.reconciler import MergeResult, Reconciler

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ReconciliationPoller:
    def __init__(
        self,
        actor: SessionActor,
        ledger: LedgerClient,
        interval: float = 2.0,
        reconciler: Optional[Reconciler] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.actor = actor
        self.ledger = ledger
        self.interval = interval
        self.reconciler = reconciler or Reconciler()
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> Optional[MergeResult]:
        """One fetch + merge. None when the fetch failed or the session ended meanwhile."""
        session = self.actor.session
        if session.closed:
            return None
        try:
            remote = await self.ledger.fetch_session(session.session_id)
        except LedgerError as exc:
            logger.warning("Session %s: fetch failed, retrying next tick: %s", session.session_id, exc)
            return None
        # the answer of an in-flight fetch is ignored once the session is gone
        if session.closed:
            return None
        try:
            return await self.actor.call(self.reconciler.merge, remote)
        except GameStateError:
            return None

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        session = self.actor.session
        while not session.closed:
            await self._sleep(self.interval)
            result = await self.poll_once()
            if result is not None and result.terminal:
                logger.info("Session %s is terminal, polling stopped", session.session_id)
                return
