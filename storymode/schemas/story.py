"""
Pydantic schemas for the story API.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, model_validator


class SegmentSchema(BaseModel):
    """A segment of the learning pathway."""

    id: str
    sequence_number: int
    title: str
    description: str


class SegmentListResponse(BaseModel):
    """Ordered segments of a lecture."""

    lecture_id: int
    segments: List[SegmentSchema]


class QuestionSchema(BaseModel):
    """A segment question."""

    type: str
    prompt: str
    options: List[str] = []
    correct_answer: Union[bool, str]
    explanation: str


class SegmentContentResponse(BaseModel):
    """Slides and questions for a segment."""

    lecture_id: int
    sequence_number: int
    slides: List[str]
    questions: List[QuestionSchema]


class ProgressResponse(BaseModel):
    """Stored progress for one segment."""

    segment_number: int
    score: int
    completed_at: Optional[datetime] = None


class ProgressListResponse(BaseModel):
    """Stored progress for a lecture."""

    lecture_id: int
    completed_count: int
    total_score: int
    progress: List[ProgressResponse]


class PathwayNodeResponse(BaseModel):
    """Segment with the learner's status."""

    segment: SegmentSchema
    status: str
    score: int
    completed_at: Optional[datetime] = None
    prerequisite: Optional[int] = None


class PathwayResponse(BaseModel):
    """The learner's pathway through a lecture."""

    lecture_id: int
    nodes: List[PathwayNodeResponse]


class NotificationSchema(BaseModel):
    """A toast emitted by a story action."""

    kind: str
    title: str
    description: str
    variant: str


class StorySessionResponse(BaseModel):
    """Current state of a story session."""

    session_id: str
    lecture_id: int
    segment: Optional[SegmentSchema] = None
    current_step: int = 0
    step_kind: str = "theory"
    score: int = 0
    max_score: int
    failed_questions: List[int] = []
    attempt: int = 1
    mastered: bool = False
    persisted: bool = False
    busy: bool = False
    stored_progress: Optional[ProgressResponse] = None


class StoryActionResponse(BaseModel):
    """Result of continue / answer / restart."""

    session: StorySessionResponse
    notifications: List[NotificationSchema] = []


class AnswerRequest(BaseModel):
    """
    Answer to the current question.

    Send is_correct when the client graded locally, or answer to have the
    server grade it.
    """

    is_correct: Optional[bool] = None
    answer: Optional[Union[bool, str]] = None

    @model_validator(mode="after")
    def _one_of(self) -> "AnswerRequest":
        if self.is_correct is None and self.answer is None:
            raise ValueError("Provide is_correct or answer")
        return self
