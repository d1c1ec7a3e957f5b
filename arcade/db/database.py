"""Generate database sessions"""

from typing import Generator

from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from arcade.db.schema import Base


def make_engine(url: str, echo: bool = False) -> Engine:
    """SQLite connections get shared between the event loop and worker threads."""
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo)
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
        # one connection, otherwise every new connection sees an empty in-memory database
        kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=echo, **kwargs)


def make_session_factory(url: str, echo: bool = False) -> sessionmaker[Session]:
    """Engine + sessionmaker, with all tables created."""
    engine = make_engine(url, echo=echo)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    db = factory()
    try:
        yield db
    finally:
        db.close()
