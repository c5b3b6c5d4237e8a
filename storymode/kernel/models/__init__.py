"""
Kernel Data Models

SQLAlchemy models for lectures, generated story content and learner progress.
"""

from storymode.kernel.models.base import Base, TimestampMixin, generate_uuid
from storymode.kernel.models.lecture import Lecture
from storymode.kernel.models.story import LectureSegment, SegmentContentRow, UserProgress

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # Lecture
    "Lecture",
    # Story
    "LectureSegment",
    "SegmentContentRow",
    "UserProgress",
]
