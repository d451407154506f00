"""
Async SQLAlchemy session factory.

The engine is created on first use so that importing the application does
not require a reachable database (or its driver) until a session is opened.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from dossier_packager.core.config import settings
from dossier_packager.db.models import Base


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        echo=echo,
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    return build_engine(settings.DATABASE_URL)


@lru_cache(maxsize=1)
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return build_session_factory(get_engine())


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables (local runs and tests; production uses managed schemas)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

