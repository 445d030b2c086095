"""
Database setup for the relational part of the store.

Uploads, questions, quizzes and progress live in a SQLAlchemy database
(SQLite by default). Chunk vectors live in ChromaDB instead.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from notes_tutor.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


def make_engine(url: str | None = None) -> Engine:
    """Create an engine, making sure a SQLite file's directory exists."""
    url = url or DATABASE_URL
    connect_args = {}
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a thread pool
        connect_args["check_same_thread"] = False
        db_path = url.split(":///", 1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory used by every component.

    Objects stay readable after commit, so results can be returned to
    callers once the transaction is closed.
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    # Import models so they are registered on Base.metadata
    from notes_tutor.storage import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
