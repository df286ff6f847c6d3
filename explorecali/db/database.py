from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

_MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")


class Base(DeclarativeBase):
    pass


def mask_url(url: str) -> str:
    """Hide the password part of a database URL for logging."""
    if "@" not in url or "//" not in url:
        return url
    scheme, rest = url.split("//", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" in credentials:
        credentials = credentials.split(":", 1)[0] + ":***"
    return f"{scheme}//{credentials}@{host}"


def make_engine(url: str, echo: bool = False) -> Engine:
    kwargs: dict[str, Any] = {}
    if url.startswith("sqlite"):
        # Requests are served from a thread pool
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _MEMORY_SQLITE_URLS:
            # One shared connection, otherwise every session gets an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(url, echo=echo, **kwargs)


class Database:
    """Engine plus session factory for a single database URL."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.engine = make_engine(url, echo=echo)
        self._session_factory = sessionmaker(
            self.engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("Database engine created for %s", mask_url(url))

    def create_all(self) -> None:
        from . import models  # noqa: F401  (registers the tables on Base.metadata)

        Base.metadata.create_all(self.engine)

    def reset(self) -> None:
        """Drop and recreate every table."""
        from . import models  # noqa: F401

        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)

    def session(self) -> Session:
        return self._session_factory()


def get_db(request: Request) -> Iterator[Session]:
    """
    FastAPI dependency yielding a session bound to the app's database.

    Services commit their own writes; anything still pending when the
    request fails is rolled back.
    """
    database: Database = request.app.state.db
    session = database.session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
