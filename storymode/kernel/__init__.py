"""
Kernel layer: persistence models and access-token verification.

The story engine and API depend on this layer; it depends on nothing above it.
"""

from storymode.kernel.models import (
    Base,
    Lecture,
    LectureSegment,
    SegmentContentRow,
    UserProgress,
)

__all__ = [
    "Base",
    "Lecture",
    "LectureSegment",
    "SegmentContentRow",
    "UserProgress",
]
