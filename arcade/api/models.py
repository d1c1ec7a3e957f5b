"""Requests and Response models of the service layer"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from arcade.core.exceptions import InvalidRequestError
from arcade.core.shared_types import GameKind, GameMode, TerminalKind

PlayerId = str


# --- REQUEST MODELS ---
class StartSessionRequest(BaseModel):
    kind: GameKind
    mode: GameMode
    player: PlayerId
    opponent: Optional[PlayerId] = None
    seed: Optional[int] = None
    time_control: Optional[int] = Field(default=None, gt=0)
    starting_fen: Optional[str] = None

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value

        parts = value.strip().split(" ")
        if len(parts) != 6:
            raise InvalidRequestError("FEN string must contain 6 space-separated parts.")
        return value.strip()

    @model_validator(mode="after")
    def validate_combination(self) -> "StartSessionRequest":
        if self.kind == GameKind.BLACKJACK and self.mode != GameMode.BOT:
            raise InvalidRequestError("Blackjack is only played against the bot seats.")
        if self.starting_fen is not None and (self.kind != GameKind.CHESS or self.mode != GameMode.BOT):
            raise InvalidRequestError("A starting FEN is only accepted for chess against the bot.")
        return self


class CreateLobbyRequest(BaseModel):
    kind: GameKind
    player: PlayerId
    is_public: bool = True
    password: Optional[str] = None
    time_control: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def validate_access(self) -> "CreateLobbyRequest":
        if self.kind == GameKind.BLACKJACK:
            raise InvalidRequestError("Blackjack is only played against the bot seats.")
        if not self.is_public and not self.password:
            raise InvalidRequestError("A private lobby needs a password.")
        return self


class JoinLobbyRequest(BaseModel):
    lobby_id: str
    player: PlayerId
    password: Optional[str] = None


class PlayRequest(BaseModel):
    session_id: str
    move: str
    seat: Optional[int] = None

    @field_validator("move")
    @classmethod
    def validate_move(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise InvalidRequestError("Empty move.")
        return value


# --- RESPONSE MODELS ---
class ClockView(BaseModel):
    remaining: list[float]
    active: Optional[int]
    running: bool


class SessionView(BaseModel):
    session_id: str
    kind: GameKind
    mode: GameMode
    players: list[PlayerId]
    local_seats: list[int]
    summary: str
    to_move: Optional[int]
    legal_actions: list[str]
    move_history: list[str]
    applied: int
    confirmed: int
    terminal: TerminalKind
    winner: Optional[int]
    reason: str
    clock: Optional[ClockView]
    draw_offered_by: Optional[PlayerId]
