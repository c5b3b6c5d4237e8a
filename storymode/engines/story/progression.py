"""
Story progression engine - the per-segment learning cycle.

Each segment is studied as a fixed four-step cycle:

    step 0  theory slide A
    step 1  theory slide B
    step 2  question 1
    step 3  question 2

Advancing past step 3 enters a transient evaluation step (4) that either
ends the cycle in mastery or sends the learner back to step 0 for review.

Rules:
- A correct answer is worth 5 XP (capped at 10).
- A wrong answer zeroes the score and forces step 0 immediately.
- Durable progress is written once per mastered cycle, when the final
  question is answered correctly with no outstanding failures.
- A failed or timed-out write is reported as a notification; in-memory
  state is kept as it was after scoring.
"""

import asyncio
import uuid
from enum import IntEnum
from typing import List, Optional, Set

from pydantic import BaseModel, Field

from storymode.engines.story import notifications as notify
from storymode.engines.story.content import Segment
from storymode.engines.story.errors import ActionInProgressError, InvalidStepError
from storymode.engines.story.notifications import Notification
from storymode.engines.story.progress_store import ProgressStore
from storymode.engines.story.scoring import calculate_new_score, is_mastered
from storymode.logging_config import get_logger

logger = get_logger(__name__)


class Step(IntEnum):
    """Steps of a segment cycle."""
    THEORY_A = 0
    THEORY_B = 1
    QUESTION_1 = 2
    QUESTION_2 = 3


EVALUATION_STEP = 4
QUESTION_STEPS = (Step.QUESTION_1, Step.QUESTION_2)
LAST_QUESTION_STEP = Step.QUESTION_2


class ProgressionState(BaseModel):
    """In-memory state of one segment cycle."""

    current_step: int = Step.THEORY_A
    score: int = 0
    failed_questions: Set[int] = Field(default_factory=set)
    attempt: int = 1
    mastered: bool = False
    persisted: bool = False

    @property
    def is_question_step(self) -> bool:
        return self.current_step in QUESTION_STEPS

    @property
    def question_index(self) -> Optional[int]:
        """0 for the first question step, 1 for the second, None on theory steps."""
        return self.current_step - Step.QUESTION_1 if self.is_question_step else None


class StoryProgressionEngine:
    """
    Drives one learner through one segment.

    Actions on an engine are serialized: an action that arrives while another
    one is still awaiting the progress write is rejected with
    ActionInProgressError instead of being interleaved.
    """

    def __init__(
        self,
        user_id: uuid.UUID,
        lecture_id: int,
        segment: Segment,
        progress_store: ProgressStore,
        write_timeout_seconds: float = 10.0,
    ):
        self.user_id = user_id
        self.lecture_id = lecture_id
        self.segment = segment
        self.progress_store = progress_store
        self.write_timeout_seconds = write_timeout_seconds
        self.state = ProgressionState()
        self._lock = asyncio.Lock()

    @property
    def current_step(self) -> int:
        return self.state.current_step

    def score_for_segment(self, segment_id: str) -> int:
        """Running score for the given segment (0 for any other segment)."""
        return self.state.score if segment_id == self.segment.id else 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _log_extra(self) -> dict:
        return {
            "lecture_id": self.lecture_id,
            "segment_number": self.segment.sequence_number,
            "step": self.state.current_step,
            "score": self.state.score,
            "attempt": self.state.attempt,
        }

    def _ensure_idle(self) -> None:
        if self._lock.locked():
            raise ActionInProgressError("Previous action is still being processed")

    # ── transitions ──────────────────────────────────────────────────────

    def continue_(self) -> List[Notification]:
        """Advance one step; past the last question, evaluate the cycle."""
        self._ensure_idle()
        return self._advance()

    def restart(self) -> None:
        """Discard the current cycle and start again from the first slide."""
        self._ensure_idle()
        attempt = self.state.attempt + 1
        self.state = ProgressionState(attempt=attempt)
        logger.debug("Segment restarted", extra=self._log_extra())

    async def answer_question(self, correct: bool) -> List[Notification]:
        """
        Score the answer to the question on the current step.

        A correct answer also performs the following continue() in the same
        transition, so scoring, persistence and the mastery decision can not be
        separated by another action.
        """
        self._ensure_idle()
        async with self._lock:
            if not self.state.is_question_step:
                raise InvalidStepError(
                    f"Step {self.state.current_step} is a theory step; there is no question to answer"
                )
            index = self.state.question_index
            if correct:
                return await self._handle_correct_answer(index)
            return self._handle_wrong_answer(index)

    # ── internals ────────────────────────────────────────────────────────

    def _advance(self) -> List[Notification]:
        if self.state.current_step == Step.THEORY_A and self.state.mastered:
            # Going through a mastered segment again is a new attempt
            self.state = ProgressionState(attempt=self.state.attempt + 1)

        new_step = self.state.current_step + 1
        if new_step < EVALUATION_STEP:
            self.state.current_step = new_step
            logger.debug("Advanced", extra=self._log_extra())
            return []
        return self._evaluate_cycle()

    def _evaluate_cycle(self) -> List[Notification]:
        if self.state.failed_questions or not is_mastered(self.state.score):
            logger.info(
                "Cycle ended without mastery; review required",
                extra={**self._log_extra(), "failed_questions": sorted(self.state.failed_questions)},
            )
            self.state.score = 0
            self.state.current_step = Step.THEORY_A
            self.state.mastered = False
            self.state.persisted = False
            self.state.attempt += 1
            return [notify.review_required()]

        self.state.current_step = Step.THEORY_A
        self.state.mastered = True
        logger.info("Segment mastered", extra=self._log_extra())
        return [notify.node_completed()]

    def _handle_wrong_answer(self, index: int) -> List[Notification]:
        self.state.failed_questions.add(index)
        self.state.score = 0
        self.state.current_step = Step.THEORY_A
        self.state.mastered = False
        self.state.persisted = False
        self.state.attempt += 1
        logger.info(
            "Wrong answer; back to theory",
            extra={**self._log_extra(), "question_index": index},
        )
        return [notify.review_required()]

    async def _handle_correct_answer(self, index: int) -> List[Notification]:
        answered_step = self.state.current_step
        self.state.failed_questions.discard(index)
        self.state.score = calculate_new_score(self.state.score)

        if (
            not self.state.failed_questions
            and answered_step == LAST_QUESTION_STEP
            and is_mastered(self.state.score)
        ):
            saved = await self._persist_mastery()
            if not saved:
                return [notify.persistence_failed()]

        notifications = [notify.correct_answer(self.state.score)]
        notifications.extend(self._advance())
        return notifications

    async def _persist_mastery(self) -> bool:
        try:
            await asyncio.wait_for(
                self.progress_store.write_progress(
                    self.user_id,
                    self.lecture_id,
                    self.segment.sequence_number,
                    self.state.score,
                ),
                timeout=self.write_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Progress write timed out after %.1fs",
                self.write_timeout_seconds,
                extra=self._log_extra(),
            )
            return False
        except Exception:
            logger.exception("Progress write failed", extra=self._log_extra())
            return False

        self.state.persisted = True
        return True
