"""Non-blocking notices for the player (displaying them is somebody else's job)."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, session_id: str, message: str) -> None: ...


class LoggingNotifier:
    """Notices end up in the log only."""

    def notify(self, session_id: str, message: str) -> None:
        logger.warning("[%s] %s", session_id, message)
