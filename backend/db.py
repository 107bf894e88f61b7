"""
Database setup for the spatial place store.
Provides SQLAlchemy engine/session utilities (SQLite by default).
"""
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from settings import settings


Base = declarative_base()

_default_engine: Optional[Engine] = None
_default_session_factory: Optional[sessionmaker] = None


def make_engine(database_url: str) -> Engine:
    """Create an engine; SQLite files get their parent directory created."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # check_same_thread=False allows the resolver's worker threads to share the engine
        connect_args = {"check_same_thread": False}
        db_file = database_url.split("///", 1)[-1]
        if db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(engine: Engine) -> None:
    """Create the per-feature-class tables if they don't exist."""
    from repositories import models  # noqa: F401  Ensures models are registered

    Base.metadata.create_all(bind=engine)


def get_default_session_factory() -> sessionmaker:
    global _default_engine, _default_session_factory
    if _default_session_factory is None:
        _default_engine = make_engine(settings.PLACES_DATABASE_URL)
        init_db(_default_engine)
        _default_session_factory = make_session_factory(_default_engine)
    return _default_session_factory
