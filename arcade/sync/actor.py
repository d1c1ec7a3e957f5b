"""
Single writer for one GameSession.

Local applies, remote replays, clock ticks and remote status updates are all commands on one queue,
executed one at a time by one task. Commands are plain synchronous functions `command(session, *args)`,
so nothing can run in between the read of a base position and the write of the next one.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, TypeVar

from arcade.core.exceptions import GameStateError
from arcade.session.session import GameSession

logger = logging.getLogger(__name__)

T = TypeVar("T")
Command = Callable[..., Any]

_STOP = object()


class SessionActor:
    def __init__(self, session: GameSession) -> None:
        self.session = session
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def call(self, command: Callable[..., T], *args: Any) -> T:
        """Queue `command(session, *args)` and wait for its result (or exception)."""
        if not self.running:
            raise GameStateError(f"Session {self.session.session_id} is not accepting commands.")
        future = asyncio.get_running_loop().create_future()
        await self._queue.put((command, args, future))
        return await future

    async def stop(self) -> None:
        """Let already queued commands finish, then end the task."""
        if not self.running:
            return
        await self._queue.put(_STOP)
        await self._task

    async def _run(self) -> None:
        while True:
            item = await self._queue.get()
            if item is _STOP:
                break
            command, args, future = item
            if future.cancelled():
                continue
            try:
                result = command(self.session, *args)
            except Exception as exc:  # handed to the caller
                future.set_exception(exc)
            else:
                future.set_result(result)
        self._fail_pending()

    def _fail_pending(self) -> None:
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _STOP:
                continue
            _, _, future = item
            if not future.done():
                future.set_exception(GameStateError("Session actor stopped."))
