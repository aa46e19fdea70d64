from functools import wraps
from typing import AsyncIterator, List

from fastapi import Request
from sqlalchemy import inspect, text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.exceptions import DependencyUnavailable

# errors that mean "cannot reach the database", as opposed to a bad query
_UNAVAILABLE = (OperationalError, InterfaceError, OSError)


def unavailable_on_error(detail: str):
    """Turn connectivity failures inside a gateway call into a 503."""

    def decorator(fn):
        @wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except _UNAVAILABLE as exc:
                raise DependencyUnavailable(detail) from exc

        return wrapper

    return decorator


class Database:
    """Owns the engine and session factory for the whole process.

    Built once at startup and handed to request handlers through
    ``get_session``; never opened per request.
    """

    def __init__(self, url: str, echo: bool = False, pool_size: int = 5, max_overflow: int = 5):
        self.url = url
        kwargs = {"echo": echo, "future": True, "pool_pre_ping": True}
        if url.startswith("sqlite"):
            # in-memory sqlite has to share one connection across sessions
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        else:
            kwargs["pool_size"] = pool_size
            kwargs["max_overflow"] = max_overflow
        self.engine = create_async_engine(url, **kwargs)
        self.sessionmaker = async_sessionmaker(bind=self.engine, class_=AsyncSession, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            str(settings.DATABASE_URL),
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    async def create_all(self):
        # importing registers the tables on Base.metadata
        import app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def table_names(self) -> List[str]:
        async with self.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    async def dispose(self):
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:  # to be used as dependency
    db: Database = request.app.state.db
    async with db.sessionmaker() as session:
        yield session
