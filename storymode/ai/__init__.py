"""
AI layer - LLM-backed generation of story material.

Generated output never reaches learners without passing content validation.
"""

from storymode.ai.content_validation import ValidationResult, validate_segment_content, validate_segment_outline
from storymode.ai.story_generator import GeneratedSegment, StoryGenerator

__all__ = [
    "GeneratedSegment",
    "StoryGenerator",
    "ValidationResult",
    "validate_segment_content",
    "validate_segment_outline",
]
