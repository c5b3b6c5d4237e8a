"""
Study plan - the default sequence of learning steps for a lecture.

Each step names a LearningAction; the action decides where the client
navigates and which icon it shows.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel


class LearningAction(str, Enum):
    """What a study step opens."""
    SUMMARY = "summary"
    STORY = "story"
    CHAT = "chat"
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"
    RESOURCES = "resources"
    MINDMAP = "mindmap"
    PODCAST = "podcast"


class LearningStep(BaseModel):
    """One step of a study plan."""

    step: int
    title: str
    description: str
    action: LearningAction
    time_estimate: str
    benefits: List[str]


def route_segment(action: LearningAction) -> str:
    """Path segment under /course/{course_id}/lecture/{lecture_id}/ for an action."""
    match action:
        case LearningAction.SUMMARY:
            return "highlights"
        case LearningAction.STORY:
            return "story"
        case LearningAction.CHAT:
            return "chat"
        case LearningAction.FLASHCARDS:
            return "flashcards"
        case LearningAction.QUIZ:
            return "take-quiz"
        case LearningAction.RESOURCES:
            return "resources"
        case LearningAction.MINDMAP:
            return "mindmap"
        case LearningAction.PODCAST:
            return "podcast"
    raise ValueError(f"Unhandled learning action: {action!r}")


def action_icon(action: LearningAction) -> str:
    """Icon name (lucide) the client renders for an action."""
    match action:
        case LearningAction.SUMMARY:
            return "file-text"
        case LearningAction.STORY:
            return "book-open"
        case LearningAction.CHAT:
            return "message-square"
        case LearningAction.FLASHCARDS:
            return "activity"
        case LearningAction.QUIZ:
            return "brain"
        case LearningAction.RESOURCES:
            return "network"
        case LearningAction.MINDMAP:
            return "map-pin"
        case LearningAction.PODCAST:
            return "headphones"
    raise ValueError(f"Unhandled learning action: {action!r}")


def lecture_route(course_id: str, lecture_id: int, action: LearningAction) -> str:
    return f"/course/{course_id}/lecture/{lecture_id}/{route_segment(action)}"


DEFAULT_STEPS: List[LearningStep] = [
    LearningStep(
        step=1,
        title="Get the Big Picture",
        description="Start with a comprehensive overview of the lecture material",
        action=LearningAction.SUMMARY,
        time_estimate="5-10 minutes",
        benefits=["Quick understanding", "Main points highlighted", "Visual learning"],
    ),
    LearningStep(
        step=2,
        title="Interactive Story Mode",
        description="Experience the content through an engaging, interactive story",
        action=LearningAction.STORY,
        time_estimate="15-20 minutes",
        benefits=["Immersive learning", "Better retention", "Fun and engaging"],
    ),
    LearningStep(
        step=3,
        title="Interactive Learning Session",
        description="Engage in a dynamic conversation about the lecture content",
        action=LearningAction.CHAT,
        time_estimate="10-15 minutes",
        benefits=["Personalized explanations", "Clear doubts", "Deep understanding"],
    ),
    LearningStep(
        step=4,
        title="Quick Review",
        description="Test your knowledge with flashcards",
        action=LearningAction.FLASHCARDS,
        time_estimate="5-10 minutes",
        benefits=["Active recall", "Spaced repetition", "Memory reinforcement"],
    ),
    LearningStep(
        step=5,
        title="Knowledge Check",
        description="Assess your understanding with a comprehensive quiz",
        action=LearningAction.QUIZ,
        time_estimate="10-15 minutes",
        benefits=["Self-assessment", "Identify gaps", "Confidence building"],
    ),
    LearningStep(
        step=6,
        title="Explore Further",
        description="Access additional resources and related materials",
        action=LearningAction.RESOURCES,
        time_estimate="5-10 minutes",
        benefits=["Deeper insights", "Extended learning", "Different perspectives"],
    ),
]


def default_study_plan() -> List[LearningStep]:
    return [step.model_copy(deep=True) for step in DEFAULT_STEPS]
