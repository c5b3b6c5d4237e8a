"""
Story content types shared by the content provider, generator and engine.
"""

from enum import Enum
from typing import List, Union

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """Types of segment questions."""
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"


class Segment(BaseModel):
    """One node in a lecture's learning pathway."""

    id: str
    sequence_number: int
    title: str
    description: str = ""


class Question(BaseModel):
    """A question shown on a question step."""

    type: QuestionType
    prompt: str
    options: List[str] = Field(default_factory=list)
    correct_answer: Union[bool, str]
    explanation: str = ""


class SegmentContent(BaseModel):
    """Slides and questions for a segment, in display order."""

    sequence_number: int
    slides: List[str]
    questions: List[Question]

    def question_for_step(self, step: int) -> Question:
        """Question shown on a question step (2 -> first, 3 -> second)."""
        return self.questions[step - 2]
