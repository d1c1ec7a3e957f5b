"""
Application settings.

Defaults work for local development. Every field can be overridden with an environment variable
named ARCADE_<FIELD NAME IN CAPS>, e.g. ARCADE_POLL_INTERVAL_SECONDS=5.
"""

import logging
import os
from typing import Any, Literal, Self

from pydantic import BaseModel, Field

ENV_PREFIX = "ARCADE_"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseModel):
    # ledger. "sql" keeps the ledger in the local database (database_url) for offline play
    ledger_backend: Literal["graphql", "sql"] = "graphql"
    ledger_endpoint: str = "http://localhost:8080/graphql"
    ledger_timeout_seconds: float = Field(default=10.0, gt=0)

    # Reconciliation latency bound: the remote state seen locally is never older than one interval (+ fetch time)
    poll_interval_seconds: float = Field(default=2.0, gt=0)

    # lobby -> session resolution
    lobby_poll_interval_seconds: float = Field(default=1.5, gt=0)
    lobby_max_attempts: int = Field(default=10, ge=1)
    lobby_ttl_seconds: float = Field(default=600.0, gt=0)

    # clock
    clock_start_seconds: float = Field(default=300.0, gt=0)
    clock_tick_seconds: float = Field(default=1.0, gt=0)
    clock_increment_seconds: float = Field(default=10.0, ge=0)

    # bot suggestion service. An empty endpoint means "always use the fallback policy".
    suggestion_endpoint: str = ""
    suggestion_api_key: str = ""
    suggestion_timeout_seconds: float = Field(default=8.0, gt=0)
    bot_think_delay_seconds: float = Field(default=0.5, ge=0)
    bot_difficulty: Literal["easy", "medium", "hard"] = "medium"

    # SQL-backed ledger for local / offline play
    database_url: str = "sqlite:///arcade.db"

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Self:
        """Collect ARCADE_* variables, let pydantic do the type conversion / validation."""
        environ = dict(os.environ) if environ is None else environ
        overrides: dict[str, Any] = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in environ:
                overrides[name] = environ[key]
        return cls(**overrides)


def configure_logging(settings: Settings) -> None:
    """Root logger setup. Safe to call more than once (basicConfig is a no-op when handlers exist)."""
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
