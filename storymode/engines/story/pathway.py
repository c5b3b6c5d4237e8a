"""
Learning pathway - segment order, completion and locking.

Segment n (n > 1) stays locked until segment n-1 has been mastered.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from storymode.engines.story.content import Segment
from storymode.engines.story.errors import SegmentLockedError, SegmentNotFoundError
from storymode.engines.story.progress_store import PersistedProgress
from storymode.engines.story.scoring import is_mastered


class SegmentStatus(str, Enum):
    """Pathway status of a segment for one learner."""
    COMPLETED = "completed"
    AVAILABLE = "available"
    LOCKED = "locked"


class PathwayNode(BaseModel):
    """A segment as shown on the learner's pathway."""

    segment: Segment
    status: SegmentStatus
    score: int = 0
    completed_at: Optional[datetime] = None
    prerequisite: Optional[int] = None


def _is_completed(progress: Optional[PersistedProgress]) -> bool:
    return progress is not None and (progress.completed or is_mastered(progress.score))


def build_pathway(segments: List[Segment], progress: List[PersistedProgress]) -> List[PathwayNode]:
    """Combine ordered segments with stored progress into pathway nodes."""
    by_number: Dict[int, PersistedProgress] = {p.segment_number: p for p in progress}
    ordered = sorted(segments, key=lambda s: s.sequence_number)

    nodes: List[PathwayNode] = []
    previous: Optional[Segment] = None
    for segment in ordered:
        own = by_number.get(segment.sequence_number)
        if _is_completed(own):
            status = SegmentStatus.COMPLETED
        elif previous is None or _is_completed(by_number.get(previous.sequence_number)):
            status = SegmentStatus.AVAILABLE
        else:
            status = SegmentStatus.LOCKED
        nodes.append(
            PathwayNode(
                segment=segment,
                status=status,
                score=own.score if own else 0,
                completed_at=own.completed_at if own else None,
                prerequisite=previous.sequence_number if previous else None,
            )
        )
        previous = segment
    return nodes


def ensure_unlocked(
    segments: List[Segment],
    progress: List[PersistedProgress],
    sequence_number: int,
) -> PathwayNode:
    """Return the pathway node for a segment, raising if it is missing or locked."""
    nodes = build_pathway(segments, progress)
    for index, node in enumerate(nodes):
        if node.segment.sequence_number != sequence_number:
            continue
        if node.status == SegmentStatus.LOCKED:
            raise SegmentLockedError(sequence_number, nodes[index - 1].segment.title)
        return node
    raise SegmentNotFoundError(f"No segment {sequence_number}")
