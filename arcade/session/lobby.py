"""Lobby id -> session id, by polling the lobby record until somebody joins."""

import asyncio
import logging
from typing import Awaitable, Callable

from arcade.core.exceptions import LedgerError, LobbyClosedError, LobbyResolutionTimeout
from arcade.core.shared_types import LobbyStatus
from arcade.ledger.client import LedgerClient
from arcade.ledger.models import LobbyId, SessionId

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class LobbyBridge:
    def __init__(
        self,
        ledger: LedgerClient,
        interval: float = 1.5,
        max_attempts: int = 10,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.ledger = ledger
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def resolve(self, lobby_id: LobbyId) -> SessionId:
        """
        Poll until the lobby names its session.

        Raises LobbyClosedError when the lobby is cancelled or expires, LobbyResolutionTimeout
        after `max_attempts` polls without a session. A failed fetch counts as an attempt.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                lobby = await self.ledger.fetch_lobby(lobby_id)
            except LedgerError as exc:
                logger.warning("Lobby %s: fetch %d failed: %s", lobby_id, attempt, exc)
            else:
                if lobby.session_id:
                    logger.info("Lobby %s resolved to session %s", lobby_id, lobby.session_id)
                    return lobby.session_id
                if lobby.status in (LobbyStatus.CANCELLED, LobbyStatus.EXPIRED):
                    raise LobbyClosedError(f"Lobby {lobby_id} is {lobby.status}.")
            if attempt < self.max_attempts:
                await self._sleep(self.interval)
        raise LobbyResolutionTimeout(lobby_id, self.max_attempts)
