"""Database settings, async engine and session factory for flow records.

Connection settings come from the environment:

  - ``DATABASE_URL``: full URL, either driver form (takes precedence)
  - ``PG_HOST`` / ``PG_PORT`` / ``PG_USER`` / ``PG_PASSWORD`` / ``PG_DATABASE``
  - ``PG_POOL_SIZE`` / ``PG_MAX_OVERFLOW``: connection pool sizing

The runtime engine speaks asyncpg; Alembic needs the plain libpq URL, so
:class:`DatabaseSettings` exposes both.  The engine and session factory
are created on first use and kept for the process lifetime; call
``dispose_engine()`` on shutdown.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_ASYNC_SCHEME = "postgresql+asyncpg://"
_SYNC_SCHEME = "postgresql://"


@dataclass(frozen=True)
class DatabaseSettings:
    """Where flow records live and how many connections to hold."""

    url: str = f"{_SYNC_SCHEME}mindflow:mindflow@localhost:5432/mindflow"
    pool_size: int = 5
    max_overflow: int = 10

    @classmethod
    def from_env(cls) -> DatabaseSettings:
        url = os.getenv("DATABASE_URL")
        if not url:
            url = "{scheme}{user}:{password}@{host}:{port}/{database}".format(
                scheme=_SYNC_SCHEME,
                user=os.getenv("PG_USER", "mindflow"),
                password=os.getenv("PG_PASSWORD", "mindflow"),
                host=os.getenv("PG_HOST", "localhost"),
                port=os.getenv("PG_PORT", "5432"),
                database=os.getenv("PG_DATABASE", "mindflow"),
            )
        return cls(
            url=url,
            pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
        )

    @property
    def async_url(self) -> str:
        if self.url.startswith(_SYNC_SCHEME):
            return _ASYNC_SCHEME + self.url[len(_SYNC_SCHEME):]
        return self.url

    @property
    def sync_url(self) -> str:
        if self.url.startswith(_ASYNC_SCHEME):
            return _SYNC_SCHEME + self.url[len(_ASYNC_SCHEME):]
        return self.url


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Return the shared engine, creating it from ``settings`` (or env) once."""
    global _engine
    if _engine is None:
        settings = settings or DatabaseSettings.from_env()
        _engine = create_async_engine(
            settings.async_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded rows usable after commit (``expire_on_commit=False``)."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
