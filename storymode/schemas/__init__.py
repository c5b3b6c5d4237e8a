"""
Pydantic schemas for API request/response validation.
"""

from storymode.schemas.common import HealthResponse
from storymode.schemas.story import (
    AnswerRequest,
    NotificationSchema,
    PathwayNodeResponse,
    PathwayResponse,
    ProgressListResponse,
    ProgressResponse,
    QuestionSchema,
    SegmentContentResponse,
    SegmentListResponse,
    SegmentSchema,
    StoryActionResponse,
    StorySessionResponse,
)
from storymode.schemas.study_plan import StudyPlanResponse, StudyPlanStepResponse

__all__ = [
    "AnswerRequest",
    "HealthResponse",
    "NotificationSchema",
    "PathwayNodeResponse",
    "PathwayResponse",
    "ProgressListResponse",
    "ProgressResponse",
    "QuestionSchema",
    "SegmentContentResponse",
    "SegmentListResponse",
    "SegmentSchema",
    "StoryActionResponse",
    "StorySessionResponse",
    "StudyPlanResponse",
    "StudyPlanStepResponse",
]
