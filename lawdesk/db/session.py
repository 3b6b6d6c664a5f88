"""
Database Session Management
===========================

One process-wide engine, built on first use from DATABASE_URL and rebuilt
whenever that variable changes (tests point it at a temporary SQLite file).

- get_db():         FastAPI dependency, one session per request
- get_db_session(): context manager that commits on success
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./lawdesk.db"

_engine: Optional[Engine] = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def _engine_options(database_url: str) -> dict:
    options = {"echo": os.environ.get("SQL_ECHO", "false").lower() == "true"}
    if database_url.startswith("sqlite"):
        # Sessions are used from the threadpool as well as the event loop
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
            max_overflow=10,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> Engine:
    """Engine for the current DATABASE_URL"""
    global _engine
    database_url = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)
    if _engine is None or _engine.url != make_url(database_url):
        reset_engine()
        _engine = create_engine(database_url, **_engine_options(database_url))
        SessionLocal.configure(bind=_engine)
        logger.info(f"Database engine ready ({_engine.url.get_backend_name()})")
    return _engine


def reset_engine():
    """Dispose the engine; the next get_engine() builds a new one."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
    SessionLocal.configure(bind=None)


def init_db():
    """Create missing tables"""
    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Session outside a request.

    Usage:
        with get_db_session() as db:
            db.query(User).all()
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
