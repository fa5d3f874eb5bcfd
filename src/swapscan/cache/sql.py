"""SQL TTL cache backed by SQLAlchemy's async engine.

Rows live in a single cache_items table keyed by (type, key). Expired rows
read as absent and are deleted by a periodic sweep.
"""

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import BigInteger, String, Text, delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from swapscan.cache.base import CacheBackend
from swapscan.config import get_settings

logger = logging.getLogger(__name__)

SWEEP_EVERY = 100


class Base(DeclarativeBase):
    """Base class for cache models."""

    pass


class CacheItem(Base):
    """A cached JSON value."""

    __tablename__ = "cache_items"

    type: Mapped[str] = mapped_column(String(32), primary_key=True)
    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _upsert(dialect: str, row: dict[str, Any]):
    """Build an INSERT that overwrites an existing (type, key) row."""
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "mysql":
        from sqlalchemy.dialects.mysql import insert

        stmt = insert(CacheItem).values(**row)
        return stmt.on_duplicate_key_update(
            value=stmt.inserted.value, expires_at=stmt.inserted.expires_at
        )
    else:
        from sqlalchemy.dialects.sqlite import insert

    stmt = insert(CacheItem).values(**row)
    return stmt.on_conflict_do_update(
        index_elements=[CacheItem.type, CacheItem.key],
        set_={"value": stmt.excluded.value, "expires_at": stmt.excluded.expires_at},
    )


class SqlCache(CacheBackend):
    """Cache stored in a relational database.

    Writes are upserts, so concurrent writers of the same key never
    conflict and the last one wins. Every SWEEP_EVERY writes, expired rows
    are deleted.
    """

    name = "sql"

    def __init__(self, database_url: Optional[str] = None):
        """Initialize SQL cache.

        Args:
            database_url: SQLAlchemy async URL, defaults to settings.cache_database_url
        """
        settings = get_settings()
        db_url = database_url or settings.cache_database_url
        # Convert sqlite:/// to sqlite+aiosqlite:/// if needed
        if db_url.startswith("sqlite:///") and "aiosqlite" not in db_url:
            db_url = db_url.replace("sqlite:///", "sqlite+aiosqlite:///")

        engine_kwargs: dict[str, Any] = {
            "echo": settings.debug and not settings.is_production,
            "future": True,
        }
        if ":memory:" in db_url:
            engine_kwargs["poolclass"] = StaticPool

        self.database_url = db_url
        self._engine = create_async_engine(db_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._writes = 0

    async def init_db(self) -> None:
        """Create the cache table if it does not exist."""
        async with self._init_lock:
            if self._initialized:
                return
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self._initialized = True

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        if not self._initialized:
            await self.init_db()

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def get(self, type: str, key: str) -> Optional[Any]:
        async with self._session() as session:
            result = await session.execute(
                select(CacheItem.value).where(
                    CacheItem.type == type,
                    CacheItem.key == key,
                    CacheItem.expires_at > _now_ms(),
                )
            )
            raw = result.scalar_one_or_none()

        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, type: str, key: str, value: Any, ms: int) -> None:
        row = {
            "type": type,
            "key": key,
            "value": json.dumps(value),
            "expires_at": _now_ms() + ms,
        }

        async with self._session() as session:
            await session.execute(_upsert(self._engine.dialect.name, row))

        self._writes += 1
        if self._writes % SWEEP_EVERY == 0:
            await self.sweep()

    async def sweep(self) -> int:
        """Delete expired rows.

        Returns:
            Number of rows deleted
        """
        async with self._session() as session:
            result = await session.execute(
                delete(CacheItem).where(CacheItem.expires_at <= _now_ms())
            )

        if result.rowcount:
            logger.debug(f"Swept {result.rowcount} expired cache rows")
        return result.rowcount

    async def close(self) -> None:
        """Dispose of the engine's connections."""
        await self._engine.dispose()
