"""
Progress Store - durable per-(user, lecture, segment) score and completion.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storymode.engines.story.scoring import is_mastered
from storymode.kernel.models.story import UserProgress
from storymode.logging_config import get_logger

logger = get_logger(__name__)


class PersistedProgress(BaseModel):
    """Stored progress for one segment."""

    segment_number: int
    score: int
    completed_at: Optional[datetime] = None

    @property
    def completed(self) -> bool:
        return self.completed_at is not None


class ProgressStore(Protocol):
    """What the story engine needs from durable storage."""

    async def read_progress(
        self, user_id: uuid.UUID, lecture_id: int, segment_number: int
    ) -> Optional[PersistedProgress]:
        ...

    async def write_progress(
        self, user_id: uuid.UUID, lecture_id: int, segment_number: int, score: int
    ) -> PersistedProgress:
        ...

    async def list_progress(self, user_id: uuid.UUID, lecture_id: int) -> List[PersistedProgress]:
        ...


class SqlProgressStore:
    """
    Database-backed Progress Store.

    Every write runs in its own session and commits before returning, so a
    failure is visible to the caller at the moment of the write. Writes are an
    upsert on (user_id, lecture_id, segment_number); concurrent writers for the
    same key are last-write-wins. completed_at is stamped by the store when the
    score meets the mastery threshold and is never cleared.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def _to_progress(row: UserProgress) -> PersistedProgress:
        return PersistedProgress(
            segment_number=row.segment_number,
            score=row.score,
            completed_at=row.completed_at,
        )

    @staticmethod
    def _key_query(user_id: uuid.UUID, lecture_id: int, segment_number: int):
        return select(UserProgress).where(
            UserProgress.user_id == user_id,
            UserProgress.lecture_id == lecture_id,
            UserProgress.segment_number == segment_number,
        )

    async def read_progress(
        self, user_id: uuid.UUID, lecture_id: int, segment_number: int
    ) -> Optional[PersistedProgress]:
        async with self.session_factory() as session:
            result = await session.execute(self._key_query(user_id, lecture_id, segment_number))
            row = result.scalar_one_or_none()
            return self._to_progress(row) if row else None

    async def write_progress(
        self, user_id: uuid.UUID, lecture_id: int, segment_number: int, score: int
    ) -> PersistedProgress:
        async with self.session_factory() as session:
            result = await session.execute(self._key_query(user_id, lecture_id, segment_number))
            row = result.scalar_one_or_none()
            if row is None:
                row = UserProgress(
                    user_id=user_id,
                    lecture_id=lecture_id,
                    segment_number=segment_number,
                )
                session.add(row)

            row.score = score
            if is_mastered(score) and row.completed_at is None:
                row.completed_at = datetime.now(timezone.utc)

            await session.commit()
            await session.refresh(row)
            logger.info(
                "Progress saved",
                extra={
                    "lecture_id": lecture_id,
                    "segment_number": segment_number,
                    "score": score,
                    "completed": row.completed_at is not None,
                },
            )
            return self._to_progress(row)

    async def list_progress(self, user_id: uuid.UUID, lecture_id: int) -> List[PersistedProgress]:
        async with self.session_factory() as session:
            q = (
                select(UserProgress)
                .where(
                    UserProgress.user_id == user_id,
                    UserProgress.lecture_id == lecture_id,
                )
                .order_by(UserProgress.segment_number)
            )
            result = await session.execute(q)
            return [self._to_progress(row) for row in result.scalars().all()]
