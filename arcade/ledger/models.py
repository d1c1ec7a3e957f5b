"""Wire models of the remote ledger (GraphQL, camelCase on the wire)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from arcade.core.exceptions import InvalidRequestError
from arcade.core.models import Action
from arcade.core.shared_types import (
    CLOSED_STATUSES,
    GameKind,
    GameMode,
    LobbyStatus,
    SessionStatus,
)

PlayerId = str
SessionId = str
LobbyId = str


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- RECORDS ---
class RemoteAction(WireModel):
    seq: int = Field(ge=0)
    player: PlayerId
    move: str

    def to_action(self) -> Action:
        return Action(self.seq, self.player, self.move)


class RemoteSessionState(WireModel):
    session_id: SessionId
    kind: GameKind
    mode: GameMode
    status: SessionStatus
    players: list[PlayerId]
    winner: Optional[PlayerId] = None
    reason: str = ""
    seed: int = 0
    time_control: int = 300
    draw_offered_by: Optional[PlayerId] = None
    actions: list[RemoteAction] = Field(default_factory=list)

    @field_validator("actions")
    @classmethod
    def validate_sequence(cls, value: list[RemoteAction]) -> list[RemoteAction]:
        """The log is append-only and gap free: seq must read 0, 1, 2, ..."""
        for index, action in enumerate(value):
            if action.seq != index:
                raise ValueError(f"Action log out of order at position {index} (seq {action.seq}).")
        return value

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES

    def log(self) -> list[Action]:
        return [action.to_action() for action in self.actions]


class RemoteLobbyState(WireModel):
    lobby_id: LobbyId
    creator: PlayerId
    kind: GameKind
    mode: GameMode = GameMode.PEER
    is_public: bool = True
    status: LobbyStatus
    time_control: int = 300
    players: list[PlayerId] = Field(default_factory=list)
    session_id: Optional[SessionId] = None


# --- REQUESTS ---
class CreateSessionRequest(WireModel):
    kind: GameKind
    mode: GameMode
    player: PlayerId
    opponent: Optional[PlayerId] = None
    seed: Optional[int] = None
    time_control: int = Field(default=300, gt=0)


class CreateLobbyRequest(WireModel):
    kind: GameKind
    creator: PlayerId
    is_public: bool = True
    password: Optional[str] = None
    time_control: int = Field(default=300, gt=0)


class SubmitActionRequest(WireModel):
    session_id: SessionId
    player: PlayerId
    move: str

    @field_validator("move")
    @classmethod
    def validate_move(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise InvalidRequestError("Empty move token.")
        return value


class ProfileRequest(WireModel):
    player: PlayerId
    username: str = Field(min_length=1, max_length=32)
    avatar_url: str = ""


class StatsReportRequest(WireModel):
    game_kind: GameKind
    won: bool
    moves: int = Field(ge=0)
    player: PlayerId
