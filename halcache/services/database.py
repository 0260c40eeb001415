from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Declarative Base
# -----------------------------------------------------------------------------
class Base(DeclarativeBase):
    pass


# -----------------------------------------------------------------------------
# Database Engine
# -----------------------------------------------------------------------------
def make_engine(url: str = "sqlite://", **engine_kwargs: Any) -> Engine:
    """
    Create the engine backing a SQL key-value store.

    In-memory SQLite gets a static pool so every session sees the same
    database.
    """
    if url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs.setdefault("poolclass", StaticPool)
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})

    return create_engine(url, future=True, **engine_kwargs)


# -----------------------------------------------------------------------------
# Session Maker
# -----------------------------------------------------------------------------
def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        engine,
        class_=Session,
        expire_on_commit=False,
    )


# -----------------------------------------------------------------------------
# Lifecycle Utilities
# -----------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create the storage table if it does not exist yet."""
    # registers the mapped table on Base.metadata
    from halcache.models import entry  # noqa: F401

    with engine.begin() as conn:
        Base.metadata.create_all(conn)
    logger.debug("Storage table ready on %s", engine.url)


def close_db(engine: Engine) -> None:
    engine.dispose()
