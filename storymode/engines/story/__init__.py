"""
Story Engine - interactive story-mode learning pathway.

Cycle per segment:
- Step 0-1: theory slides
- Step 2-3: questions (5 XP each)
- Past step 3: mastery (10 XP, persisted) or back to step 0 for review

Segments unlock in order: segment n needs segment n-1 mastered.

ContentProvider and StorySession live in their own modules
(content_provider, session) because they depend on the AI layer.
"""

from storymode.engines.story.content import Question, QuestionType, Segment, SegmentContent
from storymode.engines.story.errors import (
    ActionInProgressError,
    ContentGenerationError,
    GenerationRateLimitError,
    InvalidStepError,
    LectureNotFoundError,
    SegmentLockedError,
    SegmentNotFoundError,
    SessionNotFoundError,
    StoryError,
)
from storymode.engines.story.grader import Grader
from storymode.engines.story.notifications import Notification, NotificationKind, NotificationVariant
from storymode.engines.story.pathway import PathwayNode, SegmentStatus, build_pathway, ensure_unlocked
from storymode.engines.story.progress_store import PersistedProgress, ProgressStore, SqlProgressStore
from storymode.engines.story.progression import ProgressionState, Step, StoryProgressionEngine

__all__ = [
    "ActionInProgressError",
    "ContentGenerationError",
    "GenerationRateLimitError",
    "Grader",
    "InvalidStepError",
    "LectureNotFoundError",
    "Notification",
    "NotificationKind",
    "NotificationVariant",
    "PathwayNode",
    "PersistedProgress",
    "ProgressStore",
    "ProgressionState",
    "Question",
    "QuestionType",
    "Segment",
    "SegmentContent",
    "SegmentLockedError",
    "SegmentNotFoundError",
    "SegmentStatus",
    "SessionNotFoundError",
    "SqlProgressStore",
    "Step",
    "StoryError",
    "StoryProgressionEngine",
    "build_pathway",
    "ensure_unlocked",
]
