"""
Blog Backend - Database Session Management
============================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       per-request session dependency.
How:   One engine with a connection pool per process. Each request receives
       its own AsyncSession which is committed when the handler returns and
       rolled back when it raises.

Connection Pooling:
    pool_size=20 / max_overflow=10 keep us well under PostgreSQL's default
    max_connections=100. SQLite (tests, local experiments) uses the dialect's
    own pool and ignores these settings.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: ORM objects stay readable after the request commits,
# lazy refreshes would fail outside the greenlet context
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    On success the transaction is committed; on any exception it is rolled
    back and the exception is re-raised for the global error handlers.
    Routes declare it with scope="function" so the commit happens before the
    response is sent.

    Example usage in a route:
        @router.get("/api/posts/{post_id}")
        async def get_post(
            post_id: int,
            db: AsyncSession = Depends(get_db_session, scope="function"),
        ):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close all pooled connections. Called from the app lifespan on shutdown."""
    await engine.dispose()
