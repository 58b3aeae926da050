"""
SQLite database connection and the local video repository.
Uses async SQLAlchemy for non-blocking operations.
"""

import logging
import random
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.catalog.contracts import RepositoryError, VideoRepository
from src.core.catalog.models import VideoRecord
from src.core.catalog.sampler import SampleResult, filter_by_tag, sample
from src.core.catalog.tags import ordered_tags
from src.db.models import Base, Video

logger = logging.getLogger(__name__)


class Database:
    """Async database manager."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine = None
        self._session_factory = None

    async def init(self) -> None:
        """Initialize database engine and create tables."""
        # Ensure data directory exists
        if "sqlite" in self.url and ":memory:" not in self.url:
            path_part = self.url.split("///", 1)[-1]
            Path(path_part).parent.mkdir(parents=True, exist_ok=True)

        self._engine = create_async_engine(self.url, echo=self.echo)

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        # Create all tables
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        if self._engine:
            await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session."""
        if not self._session_factory:
            await self.init()

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


class SQLiteVideoRepository(VideoRepository):
    """Video records in a local database, for development without Google Sheets."""

    def __init__(self, database: Database, rng: Optional[random.Random] = None):
        self.db = database
        self.rng = rng

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self.db.session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Database request failed: {e}")
            raise RepositoryError("Database request failed") from e

    async def get_all_tags(self) -> list[str]:
        async with self._session() as session:
            result = await session.execute(select(Video.tags).order_by(Video.id))
            return ordered_tags(result.scalars().all())

    async def get_videos_by_tag(self, tag: str, limit: int) -> SampleResult:
        async with self._session() as session:
            result = await session.execute(select(Video).order_by(Video.id))
            records = [
                VideoRecord(title=video.title, url=video.url, tags=video.tags)
                for video in result.scalars().all()
            ]
        # Filter in Python: SQLite lower() only folds ASCII
        return sample(filter_by_tag(records, tag), limit, self.rng)

    async def add_video(self, title: str, url: str, tags: str) -> None:
        async with self._session() as session:
            session.add(Video(title=title, url=url, tags=tags))

    async def is_duplicate_url(self, url: str) -> bool:
        async with self._session() as session:
            result = await session.execute(select(Video.id).where(Video.url == url).limit(1))
            return result.scalar_one_or_none() is not None
