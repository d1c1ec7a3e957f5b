"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBSession(Base):
    __tablename__ = "sessions"
    id: Mapped[str] = mapped_column(primary_key=True)
    kind: Mapped[str]
    mode: Mapped[str]
    status: Mapped[str]
    players: Mapped[list[str]] = mapped_column(JSON)
    winner: Mapped[Optional[str]]
    reason: Mapped[str] = mapped_column(default="")
    seed: Mapped[int]
    time_control: Mapped[int]
    increment: Mapped[int] = mapped_column(default=0)
    time_left: Mapped[list[float]] = mapped_column(JSON)  # seconds per seat
    turn_started_at: Mapped[datetime] = mapped_column(default=utc_now)
    draw_offered_by: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class DBAction(Base):
    __tablename__ = "actions"
    __table_args__ = (UniqueConstraint("session_id", "seq"),)
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(ForeignKey("sessions.id"))
    seq: Mapped[int]
    player: Mapped[str]
    move: Mapped[str]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)


class DBLobby(Base):
    __tablename__ = "lobbies"
    id: Mapped[str] = mapped_column(primary_key=True)
    creator: Mapped[str]
    kind: Mapped[str]
    mode: Mapped[str]
    is_public: Mapped[bool] = mapped_column(default=True)
    password: Mapped[Optional[str]]
    status: Mapped[str]
    time_control: Mapped[int]
    players: Mapped[list[str]] = mapped_column(JSON)
    session_id: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    expires_at: Mapped[datetime]


class DBResult(Base):
    __tablename__ = "results"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player: Mapped[str]
    game_kind: Mapped[str]
    won: Mapped[bool]
    moves: Mapped[int]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)


class DBProfile(Base):
    __tablename__ = "profiles"
    player: Mapped[str] = mapped_column(primary_key=True)
    username: Mapped[str]
    avatar_url: Mapped[str] = mapped_column(default="")
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
