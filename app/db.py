"""SQLAlchemy engine/session factory.

The engine is created lazily so importing models (or running with
STORE_BACKEND=memory) never requires a database driver.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .settings import DATABASE_ECHO, DATABASE_URL

Base = declarative_base()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
    return create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        echo=DATABASE_ECHO,
        connect_args=connect_args,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: rows are mapped to records after commit
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create tables for every model (idempotent)."""
    import domain.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)


__all__ = ["Base", "get_engine", "make_session_factory", "init_db"]
