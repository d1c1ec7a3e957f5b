"""
Remote ledger interface.

`LedgerClient` is what the sync / session layers depend on. `GraphQLLedgerClient` talks to the real
ledger over HTTP; the SQL-backed ledger in `arcade.db` implements the same protocol for local play.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol

import aiohttp
from pydantic import ValidationError

from arcade.core.exceptions import LedgerError
from arcade.ledger import queries
from arcade.ledger.models import (
    CreateLobbyRequest,
    CreateSessionRequest,
    LobbyId,
    PlayerId,
    ProfileRequest,
    RemoteLobbyState,
    RemoteSessionState,
    SessionId,
    StatsReportRequest,
    SubmitActionRequest,
)

logger = logging.getLogger(__name__)


class LedgerClient(Protocol):
    """Every method raises LedgerError when the ledger rejects the call or cannot be reached."""

    async def fetch_session(self, session_id: SessionId) -> RemoteSessionState: ...

    async def fetch_lobby(self, lobby_id: LobbyId) -> RemoteLobbyState: ...

    async def create_session(self, request: CreateSessionRequest) -> SessionId: ...

    async def create_lobby(self, request: CreateLobbyRequest) -> LobbyId: ...

    async def join_lobby(
        self, lobby_id: LobbyId, player: PlayerId, password: Optional[str] = None
    ) -> None: ...

    async def cancel_lobby(self, lobby_id: LobbyId, player: PlayerId) -> None: ...

    async def submit_action(self, request: SubmitActionRequest) -> None: ...

    async def register_profile(self, request: ProfileRequest) -> None: ...

    async def record_result(self, request: StatsReportRequest) -> None: ...

    async def resign(self, session_id: SessionId, player: PlayerId) -> None: ...

    async def offer_draw(self, session_id: SessionId, player: PlayerId) -> None: ...

    async def accept_draw(self, session_id: SessionId, player: PlayerId) -> None: ...

    async def claim_timeout(self, session_id: SessionId, player: PlayerId) -> None: ...


class GraphQLLedgerClient:
    """POST {"query", "variables"} to one endpoint. GraphQL `errors` and HTTP errors become LedgerError."""

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    # --- queries ---
    async def fetch_session(self, session_id: SessionId) -> RemoteSessionState:
        data = await self._execute(queries.FETCH_SESSION, {"sessionId": session_id})
        return self._parse(RemoteSessionState, data.get("session"), f"session {session_id}")

    async def fetch_lobby(self, lobby_id: LobbyId) -> RemoteLobbyState:
        data = await self._execute(queries.FETCH_LOBBY, {"lobbyId": lobby_id})
        return self._parse(RemoteLobbyState, data.get("lobby"), f"lobby {lobby_id}")

    # --- mutations ---
    async def create_session(self, request: CreateSessionRequest) -> SessionId:
        data = await self._execute(queries.CREATE_SESSION, {"input": _dump(request)})
        return self._required_id(data, "createSession")

    async def create_lobby(self, request: CreateLobbyRequest) -> LobbyId:
        data = await self._execute(queries.CREATE_LOBBY, {"input": _dump(request)})
        return self._required_id(data, "createLobby")

    async def join_lobby(
        self, lobby_id: LobbyId, player: PlayerId, password: Optional[str] = None
    ) -> None:
        await self._execute(
            queries.JOIN_LOBBY,
            {"lobbyId": lobby_id, "player": player, "password": password},
        )

    async def cancel_lobby(self, lobby_id: LobbyId, player: PlayerId) -> None:
        await self._execute(queries.CANCEL_LOBBY, {"lobbyId": lobby_id, "player": player})

    async def submit_action(self, request: SubmitActionRequest) -> None:
        await self._execute(queries.SUBMIT_ACTION, {"input": _dump(request)})

    async def register_profile(self, request: ProfileRequest) -> None:
        await self._execute(queries.REGISTER_PROFILE, {"input": _dump(request)})

    async def record_result(self, request: StatsReportRequest) -> None:
        await self._execute(queries.RECORD_RESULT, {"input": _dump(request)})

    async def resign(self, session_id: SessionId, player: PlayerId) -> None:
        await self._control("resign", session_id, player)

    async def offer_draw(self, session_id: SessionId, player: PlayerId) -> None:
        await self._control("offerDraw", session_id, player)

    async def accept_draw(self, session_id: SessionId, player: PlayerId) -> None:
        await self._control("acceptDraw", session_id, player)

    async def claim_timeout(self, session_id: SessionId, player: PlayerId) -> None:
        await self._control("claimTimeout", session_id, player)

    # --- transport ---
    async def _control(self, field: str, session_id: SessionId, player: PlayerId) -> None:
        await self._execute(
            queries.session_control(field), {"sessionId": session_id, "player": player}
        )

    async def _execute(self, document: str, variables: dict[str, Any]) -> dict[str, Any]:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        logger.debug("Ledger call %s", document.strip().split("(", 1)[0])
        try:
            async with self._session.post(
                self.endpoint,
                json={"query": document, "variables": variables},
                timeout=self.timeout,
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise LedgerError(f"Ledger answered HTTP {response.status}: {text[:256]}")
                body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise LedgerError(f"Ledger request failed: {exc}") from exc

        if not isinstance(body, dict):
            raise LedgerError("Ledger sent a response that is not a JSON object.")
        errors = body.get("errors")
        if errors:
            message = errors[0].get("message", "GraphQL error") if isinstance(errors[0], dict) else str(errors[0])
            raise LedgerError(message)
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _parse(model: type, payload: Any, what: str) -> Any:
        if payload is None:
            raise LedgerError(f"Ledger has no {what}.")
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise LedgerError(f"Ledger sent a malformed {what}: {exc}") from exc

    @staticmethod
    def _required_id(data: dict[str, Any], field: str) -> str:
        value = data.get(field)
        if not value:
            raise LedgerError(f"Ledger did not return an id for {field}.")
        return str(value)


def _dump(request: Any) -> dict[str, Any]:
    return request.model_dump(mode="json", by_alias=True)
