"""
Story models - generated segments, cached segment content and learner progress.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from storymode.kernel.models.base import Base, TimestampMixin, generate_uuid


class LectureSegment(Base, TimestampMixin):
    """
    One node of a lecture's learning pathway.

    Generated once per lecture; sequence_number (1-based) orders the pathway
    and keys both content and progress rows.
    """

    __tablename__ = "lecture_segments"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    lecture_id: Mapped[int] = mapped_column(
        ForeignKey("lectures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("lecture_id", "sequence_number", name="uq_lecture_segments_lecture_seq"),
    )


class SegmentContentRow(Base, TimestampMixin):
    """Cached slides and questions for a single segment."""

    __tablename__ = "segment_contents"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    lecture_id: Mapped[int] = mapped_column(
        ForeignKey("lectures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)

    slides: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    questions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    model_used: Mapped[str] = mapped_column(String(100), nullable=False, default="stub")

    __table_args__ = (
        UniqueConstraint("lecture_id", "sequence_number", name="uq_segment_contents_lecture_seq"),
    )


class UserProgress(Base, TimestampMixin):
    """
    Durable per-user, per-lecture, per-segment progress.

    completed_at is set by the store when score reaches the mastery threshold
    and is never cleared afterwards.
    """

    __tablename__ = "user_progress"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    lecture_id: Mapped[int] = mapped_column(
        ForeignKey("lectures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    segment_number: Mapped[int] = mapped_column(Integer, nullable=False)

    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "lecture_id", "segment_number",
            name="uq_user_progress_user_lecture_segment",
        ),
        CheckConstraint("score >= 0 AND score <= 10", name="ck_user_progress_score_range"),
    )
