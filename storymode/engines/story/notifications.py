"""
Learner-facing notifications (toasts) emitted by story transitions.
"""

from enum import Enum

from pydantic import BaseModel

from storymode.engines.story.scoring import MAX_SCORE, POINTS_PER_CORRECT_ANSWER


class NotificationKind(str, Enum):
    """What happened."""
    REVIEW_REQUIRED = "review_required"
    CORRECT_ANSWER = "correct_answer"
    NODE_COMPLETED = "node_completed"
    PERSISTENCE_FAILED = "persistence_failed"
    NODE_LOCKED = "node_locked"


class NotificationVariant(str, Enum):
    """How the client should style it."""
    DEFAULT = "default"
    CELEBRATION = "celebration"
    DESTRUCTIVE = "destructive"


class Notification(BaseModel):
    """A single toast."""

    kind: NotificationKind
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT


def review_required() -> Notification:
    return Notification(
        kind=NotificationKind.REVIEW_REQUIRED,
        title="Let's review!",
        description="Let's go back to the theory slides to better understand the material.",
        variant=NotificationVariant.DESTRUCTIVE,
    )


def correct_answer(total_score: int) -> Notification:
    return Notification(
        kind=NotificationKind.CORRECT_ANSWER,
        title="🌟 Correct Answer!",
        description=(
            f"+{POINTS_PER_CORRECT_ANSWER} XP points earned! "
            f"Total: {total_score}/{MAX_SCORE} XP"
        ),
    )


def node_completed() -> Notification:
    return Notification(
        kind=NotificationKind.NODE_COMPLETED,
        title="🎉 Node Completed!",
        description="Great job! You've mastered this node.",
        variant=NotificationVariant.CELEBRATION,
    )


def persistence_failed() -> Notification:
    return Notification(
        kind=NotificationKind.PERSISTENCE_FAILED,
        title="Error",
        description="Failed to save progress. Please try again.",
        variant=NotificationVariant.DESTRUCTIVE,
    )


def node_locked(message: str) -> Notification:
    return Notification(
        kind=NotificationKind.NODE_LOCKED,
        title="Node Locked",
        description=message,
        variant=NotificationVariant.DESTRUCTIVE,
    )
