"""
Story sessions - the explicit context a learner's story actions run in.

A StorySession belongs to one learner and one lecture and carries the
collaborators the engine needs (content provider, progress store). The
registry that keeps sessions alive between HTTP requests is owned by the
application instance.
"""

import time
import uuid
from typing import Dict, List, Optional, Tuple, Union

from storymode.engines.story.content import Segment, SegmentContent
from storymode.engines.story.content_provider import ContentProvider
from storymode.engines.story.errors import InvalidStepError, SessionNotFoundError
from storymode.engines.story.grader import Grader
from storymode.engines.story.notifications import Notification
from storymode.engines.story.pathway import ensure_unlocked
from storymode.engines.story.progress_store import PersistedProgress, ProgressStore
from storymode.engines.story.progression import StoryProgressionEngine
from storymode.logging_config import get_logger, story_session_var

logger = get_logger(__name__)


class StorySession:
    """One learner working through one lecture's story."""

    def __init__(
        self,
        user_id: uuid.UUID,
        lecture_id: int,
        content_provider: ContentProvider,
        progress_store: ProgressStore,
        write_timeout_seconds: float = 10.0,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.user_id = user_id
        self.lecture_id = lecture_id
        self.content_provider = content_provider
        self.progress_store = progress_store
        self.write_timeout_seconds = write_timeout_seconds
        self.last_active = time.monotonic()

        self.active: Optional[StoryProgressionEngine] = None
        self.active_content: Optional[SegmentContent] = None
        self.stored_progress: Optional[PersistedProgress] = None

    def touch(self) -> None:
        self.last_active = time.monotonic()

    def _require_active(self) -> Tuple[StoryProgressionEngine, SegmentContent]:
        if self.active is None or self.active_content is None:
            raise InvalidStepError("No segment has been entered in this session")
        return self.active, self.active_content

    async def enter_segment(self, sequence_number: int) -> StoryProgressionEngine:
        """
        Start (or restart) a segment cycle.

        Loads segments and content through the provider (generating them on
        first use) and refuses segments whose predecessor is not mastered yet.
        """
        segments: List[Segment] = await self.content_provider.get_segments(self.lecture_id)
        progress = await self.progress_store.list_progress(self.user_id, self.lecture_id)
        node = ensure_unlocked(segments, progress, sequence_number)

        content = await self.content_provider.get_segment_content(
            self.lecture_id,
            sequence_number,
            node.segment.title,
            node.segment.description,
        )
        engine = StoryProgressionEngine(
            user_id=self.user_id,
            lecture_id=self.lecture_id,
            segment=node.segment,
            progress_store=self.progress_store,
            write_timeout_seconds=self.write_timeout_seconds,
        )
        self.active = engine
        self.active_content = content
        self.stored_progress = next(
            (p for p in progress if p.segment_number == sequence_number), None
        )
        logger.info(
            "Entered segment",
            extra={"lecture_id": self.lecture_id, "segment_number": sequence_number},
        )
        return engine

    def continue_(self) -> List[Notification]:
        engine, _ = self._require_active()
        return engine.continue_()

    def restart(self) -> None:
        engine, _ = self._require_active()
        engine.restart()

    async def answer(
        self,
        is_correct: Optional[bool] = None,
        answer: Union[bool, str, None] = None,
    ) -> List[Notification]:
        """Answer the current question, either pre-graded or graded here."""
        engine, content = self._require_active()
        if is_correct is None:
            if answer is None:
                raise InvalidStepError("Either is_correct or answer is required")
            if not engine.state.is_question_step:
                raise InvalidStepError(
                    f"Step {engine.current_step} is a theory step; there is no question to answer"
                )
            is_correct = Grader.grade(content.question_for_step(engine.current_step), answer)
        notifications = await engine.answer_question(is_correct)
        if engine.state.persisted:
            self.stored_progress = await self._refresh_stored(engine.segment.sequence_number)
        return notifications

    async def _refresh_stored(self, sequence_number: int) -> Optional[PersistedProgress]:
        try:
            return await self.progress_store.read_progress(self.user_id, self.lecture_id, sequence_number)
        except Exception:
            logger.warning("Could not re-read stored progress", exc_info=True)
            return self.stored_progress


class StorySessionRegistry:
    """In-process store of live story sessions, expired after a period of inactivity."""

    def __init__(
        self,
        content_provider: ContentProvider,
        progress_store: ProgressStore,
        ttl_seconds: int = 4 * 3600,
        write_timeout_seconds: float = 10.0,
    ):
        self.content_provider = content_provider
        self.progress_store = progress_store
        self.ttl_seconds = ttl_seconds
        self.write_timeout_seconds = write_timeout_seconds
        self._sessions: Dict[str, StorySession] = {}

    def purge_expired(self) -> int:
        now = time.monotonic()
        expired = [sid for sid, s in self._sessions.items() if now - s.last_active > self.ttl_seconds]
        for sid in expired:
            self._sessions.pop(sid, None)
        if expired:
            logger.debug("Purged %d expired story sessions", len(expired))
        return len(expired)

    def get_or_create(self, user_id: uuid.UUID, lecture_id: int) -> StorySession:
        """The learner's live session for a lecture, or a new one."""
        self.purge_expired()
        for session in self._sessions.values():
            if session.user_id == user_id and session.lecture_id == lecture_id:
                session.touch()
                story_session_var.set(session.id)
                return session

        session = StorySession(
            user_id=user_id,
            lecture_id=lecture_id,
            content_provider=self.content_provider,
            progress_store=self.progress_store,
            write_timeout_seconds=self.write_timeout_seconds,
        )
        self._sessions[session.id] = session
        story_session_var.set(session.id)
        logger.info("Story session created", extra={"lecture_id": lecture_id})
        return session

    def get(self, session_id: str, user_id: uuid.UUID) -> StorySession:
        """Look up a session owned by user_id."""
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise SessionNotFoundError(f"Story session {session_id} not found")
        session.touch()
        story_session_var.set(session.id)
        return session
