"""
Validation of LLM-generated story material before it is cached.
"""

from typing import Any, Dict, List

from pydantic import BaseModel

from storymode.engines.story.content import QuestionType, SegmentContent
from storymode.engines.story.scoring import TOTAL_QUESTIONS_PER_SEGMENT

SLIDES_PER_SEGMENT = 2
MULTIPLE_CHOICE_OPTION_COUNT = 4


class ValidationResult(BaseModel):
    """Result of validating generated content."""

    valid: bool
    issues: List[str]


def validate_segment_content(content: SegmentContent) -> ValidationResult:
    """
    Check a generated segment against what the story cycle needs.

    - exactly two non-empty theory slides
    - exactly two questions, each with a prompt and an explanation
    - multiple choice: four options, the correct answer among them
    - true/false: a boolean correct answer
    """
    issues: List[str] = []

    if len(content.slides) != SLIDES_PER_SEGMENT:
        issues.append(f"Expected {SLIDES_PER_SEGMENT} theory slides, got {len(content.slides)}")
    for i, slide in enumerate(content.slides, start=1):
        if not slide.strip():
            issues.append(f"Theory slide {i} is empty")

    if len(content.questions) != TOTAL_QUESTIONS_PER_SEGMENT:
        issues.append(
            f"Expected {TOTAL_QUESTIONS_PER_SEGMENT} questions, got {len(content.questions)}"
        )

    for i, q in enumerate(content.questions, start=1):
        if not q.prompt.strip():
            issues.append(f"Question {i} has no prompt")
        if not q.explanation.strip():
            issues.append(f"Question {i} has no explanation")

        if q.type == QuestionType.MULTIPLE_CHOICE:
            if len(q.options) != MULTIPLE_CHOICE_OPTION_COUNT:
                issues.append(
                    f"Question {i}: multiple choice questions must have exactly "
                    f"{MULTIPLE_CHOICE_OPTION_COUNT} options"
                )
            if not isinstance(q.correct_answer, str) or q.correct_answer not in q.options:
                issues.append(f"Question {i}: correct answer is not one of the options")
        elif q.type == QuestionType.TRUE_FALSE:
            if not isinstance(q.correct_answer, bool):
                issues.append(f"Question {i}: true/false answer must be a boolean")

    return ValidationResult(valid=not issues, issues=issues)


def validate_segment_outline(segments: List[Dict[str, Any]]) -> ValidationResult:
    """Check the generated segment outline (titles and descriptions)."""
    issues: List[str] = []
    if not segments:
        issues.append("No segments generated")
    for i, seg in enumerate(segments, start=1):
        if not str(seg.get("title") or "").strip():
            issues.append(f"Segment {i} has no title")
    return ValidationResult(valid=not issues, issues=issues)
