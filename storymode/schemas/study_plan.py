"""
Pydantic schemas for the study plan API.
"""

from typing import List

from pydantic import BaseModel


class StudyPlanStepResponse(BaseModel):
    """One study step with its client route."""

    step: int
    title: str
    description: str
    action: str
    time_estimate: str
    benefits: List[str]
    route: str
    icon: str


class StudyPlanResponse(BaseModel):
    """Study plan for a lecture."""

    lecture_id: int
    steps: List[StudyPlanStepResponse]
