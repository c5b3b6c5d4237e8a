"""
Story engine exceptions.

Routers translate these to HTTP errors; wrong answers and failed progress
writes are not exceptions (they are ordinary transitions / notifications).
"""

from storymode.engines.story.scoring import MASTERY_THRESHOLD


class StoryError(Exception):
    """Base class for story engine errors."""


class LectureNotFoundError(StoryError):
    """The lecture does not exist or has no extracted text."""


class SegmentNotFoundError(StoryError):
    """No segment with that sequence number exists for the lecture."""


class ContentGenerationError(StoryError):
    """The content provider could not produce segments or segment content."""


class SessionNotFoundError(StoryError):
    """Unknown or expired story session."""


class InvalidStepError(StoryError):
    """The action does not apply to the session's current step."""


class ActionInProgressError(StoryError):
    """Another action on the same session has not finished yet."""


class SegmentLockedError(StoryError):
    """The previous segment has not been mastered yet."""

    def __init__(self, sequence_number: int, prerequisite_title: str):
        self.sequence_number = sequence_number
        self.prerequisite_title = prerequisite_title
        super().__init__(
            f"Complete {prerequisite_title} first to unlock this node. "
            f"You need {MASTERY_THRESHOLD} XP in each prerequisite node."
        )


class GenerationRateLimitError(StoryError):
    """The learner has used up their content generation budget for now."""
