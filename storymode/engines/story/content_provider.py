"""
Content Provider - segment outlines and segment material, generated once and cached.

Outlines and per-segment content are generated lazily the first time they are
requested, stored in the database and served from there forever after.
Generation is a single request with a timeout and no retry, made without a
database session open: the cache read and the insert use separate sessions.
"""

import asyncio
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storymode.ai.content_validation import validate_segment_content, validate_segment_outline
from storymode.ai.story_generator import StoryGenerator
from storymode.engines.story.content import Question, Segment, SegmentContent
from storymode.engines.story.errors import (
    ContentGenerationError,
    LectureNotFoundError,
    SegmentNotFoundError,
)
from storymode.kernel.models.lecture import Lecture
from storymode.kernel.models.story import LectureSegment, SegmentContentRow
from storymode.logging_config import get_logger

logger = get_logger(__name__)


class ContentProvider:
    """Serves story segments and their content for a lecture."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        generator: Optional[StoryGenerator] = None,
        generation_timeout_seconds: float = 60.0,
        before_generate: Optional[Callable[[str], None]] = None,
    ):
        self.session_factory = session_factory
        self.generator = generator or StoryGenerator()
        self.generation_timeout_seconds = generation_timeout_seconds
        # Called right before each model call; may raise to refuse it
        self.before_generate = before_generate

    @staticmethod
    def _to_segment(row: LectureSegment) -> Segment:
        return Segment(
            id=str(row.id),
            sequence_number=row.sequence_number,
            title=row.title,
            description=row.description,
        )

    @staticmethod
    def _to_content(row: SegmentContentRow) -> SegmentContent:
        return SegmentContent(
            sequence_number=row.sequence_number,
            slides=list(row.slides),
            questions=[Question.model_validate(q) for q in row.questions],
        )

    async def _load_lecture(self, session: AsyncSession, lecture_id: int) -> Lecture:
        lecture = await session.get(Lecture, lecture_id)
        if lecture is None:
            raise LectureNotFoundError(f"Lecture {lecture_id} not found")
        if not (lecture.content or "").strip():
            raise LectureNotFoundError(f"Lecture {lecture_id} has no extracted text yet")
        return lecture

    def _charge_generation(self, what: str) -> None:
        if self.before_generate is not None:
            self.before_generate(what)

    async def _generate(self, what: str, coro):
        """Await one generation call, mapping every failure to ContentGenerationError."""
        try:
            return await asyncio.wait_for(coro, timeout=self.generation_timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.warning("%s generation timed out after %.0fs", what, self.generation_timeout_seconds)
            raise ContentGenerationError(f"{what} generation timed out") from e
        except ContentGenerationError:
            raise
        except Exception as e:
            logger.exception("%s generation failed", what)
            raise ContentGenerationError(f"{what} generation failed: {e}") from e

    # ── segments ─────────────────────────────────────────────────────────

    async def _cached_segments(self, session: AsyncSession, lecture_id: int) -> List[Segment]:
        q = (
            select(LectureSegment)
            .where(LectureSegment.lecture_id == lecture_id)
            .order_by(LectureSegment.sequence_number)
        )
        result = await session.execute(q)
        return [self._to_segment(row) for row in result.scalars().all()]

    async def get_segments(self, lecture_id: int) -> List[Segment]:
        """Ordered segments of a lecture, generating the outline on first use."""
        async with self.session_factory() as session:
            cached = await self._cached_segments(session, lecture_id)
            if cached:
                return cached
            lecture = await self._load_lecture(session, lecture_id)
            title, text = lecture.title, lecture.content or ""

        # No session is held while the model is working
        self._charge_generation("Segment outline")
        logger.info("Generating segment outline", extra={"lecture_id": lecture_id})
        outline = await self._generate(
            "Segment outline",
            self.generator.generate_outline(title, text),
        )
        validation = validate_segment_outline([s.model_dump() for s in outline])
        if not validation.valid:
            raise ContentGenerationError(
                "Generated outline is invalid: " + "; ".join(validation.issues)
            )

        async with self.session_factory() as session:
            for index, generated in enumerate(outline, start=1):
                session.add(
                    LectureSegment(
                        lecture_id=lecture_id,
                        sequence_number=index,
                        title=generated.title,
                        description=generated.description,
                    )
                )
            try:
                await session.commit()
            except IntegrityError:
                # Another request stored an outline first; serve that one
                await session.rollback()
                logger.info("Outline already stored concurrently", extra={"lecture_id": lecture_id})

            return await self._cached_segments(session, lecture_id)

    async def get_segment(self, lecture_id: int, sequence_number: int) -> Segment:
        for segment in await self.get_segments(lecture_id):
            if segment.sequence_number == sequence_number:
                return segment
        raise SegmentNotFoundError(f"Lecture {lecture_id} has no segment {sequence_number}")

    # ── segment content ──────────────────────────────────────────────────

    async def _cached_content(
        self, session: AsyncSession, lecture_id: int, sequence_number: int
    ) -> Optional[SegmentContent]:
        q = select(SegmentContentRow).where(
            SegmentContentRow.lecture_id == lecture_id,
            SegmentContentRow.sequence_number == sequence_number,
        )
        result = await session.execute(q)
        row = result.scalar_one_or_none()
        return self._to_content(row) if row else None

    async def get_segment_content(
        self,
        lecture_id: int,
        sequence_number: int,
        segment_title: str,
        segment_description: str = "",
    ) -> SegmentContent:
        """Slides and questions for a segment, generating them on first use."""
        async with self.session_factory() as session:
            cached = await self._cached_content(session, lecture_id, sequence_number)
            if cached:
                return cached
            lecture = await self._load_lecture(session, lecture_id)
            text = lecture.content or ""

        self._charge_generation("Segment content")
        logger.info(
            "Generating segment content",
            extra={"lecture_id": lecture_id, "segment_number": sequence_number},
        )
        content, model_used = await self._generate(
            "Segment content",
            self.generator.generate_segment_content(
                sequence_number,
                segment_title,
                segment_description,
                text,
            ),
        )
        validation = validate_segment_content(content)
        if not validation.valid:
            raise ContentGenerationError(
                "Generated content is invalid: " + "; ".join(validation.issues)
            )

        async with self.session_factory() as session:
            session.add(
                SegmentContentRow(
                    lecture_id=lecture_id,
                    sequence_number=sequence_number,
                    slides=content.slides,
                    questions=[q.model_dump(mode="json") for q in content.questions],
                    model_used=model_used,
                )
            )
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                stored = await self._cached_content(session, lecture_id, sequence_number)
                if stored:
                    return stored
                raise
        return content
