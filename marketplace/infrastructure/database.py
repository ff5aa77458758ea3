"""Engine, sessions and schema bootstrap."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from marketplace.config import settings

Base = declarative_base()


def build_engine(url: str = settings.database_url) -> AsyncEngine:
    """Create the async engine for `url`.

    SQLite URLs (tests, local runs) get a single shared connection since
    pool sizing does not apply to them.
    """
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False, autoflush=False)


engine = build_engine()
async_session_factory = build_session_factory(engine)


@asynccontextmanager
async def session_scope(factory: Optional[async_sessionmaker] = None) -> AsyncGenerator[AsyncSession, None]:
    """One unit of work outside a request: commit on success, roll back on error."""
    async with (factory or async_session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for FastAPI dependencies.

    The whole request is one transaction: offer row locks taken by the
    services are held until the handler returns.
    """
    async with session_scope() as session:
        yield session


async def create_schema(bind: AsyncEngine) -> None:
    # Registers the tables on Base.metadata
    from marketplace.infrastructure import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Create missing tables on the configured database."""
    await create_schema(engine)


async def close_db() -> None:
    await engine.dispose()
