"""
Story Generator - LLM calls that produce segment outlines and segment content.

Uses OpenAI when an API key is configured; otherwise returns deterministic
stub material so the service stays usable in development. Each call is a
single request without retries; the caller owns timeouts and caching.
"""

import json
import time
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from storymode.config import Settings, get_settings
from storymode.engines.story.content import Question, QuestionType, SegmentContent
from storymode.logging_config import get_logger

logger = get_logger(__name__)

# Lecture text is truncated to keep prompts inside the model's context window
MAX_LECTURE_CHARS = 60_000

OUTLINE_SYSTEM_PROMPT = (
    "You are an expert at analyzing educational content and breaking it down into "
    "logical segments. Each segment's title and description must directly reference "
    "specific concepts, terms, or ideas from the lecture content. Do not produce "
    "generic or template-based segments."
)

CONTENT_SYSTEM_PROMPT = (
    "You are an educational content creator. You write short, precise theory slides "
    "and quiz questions grounded only in the lecture material you are given."
)


class GeneratedSegment(BaseModel):
    """One entry of a generated lecture outline."""

    title: str
    description: str = ""


class StoryGenerator:
    """Produces story material for a lecture."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ── public API ───────────────────────────────────────────────────────

    async def generate_outline(self, lecture_title: str, lecture_text: str) -> List[GeneratedSegment]:
        """Break a lecture into 5-8 ordered segments."""
        if not self.settings.openai_configured:
            return self._stub_outline(lecture_title)

        prompt = (
            f'You are analyzing a lecture titled "{lecture_title}".\n'
            "Read the lecture content and break it into 5-8 logical segments, in the "
            "order they appear. For each segment write a title naming the specific "
            "concept, and a 3-5 sentence description that references the concepts, "
            "terms and examples the lecture actually uses and builds on the previous "
            "segments.\n\n"
            'Return JSON: {"segments": [{"title": "...", "segment_description": "..."}]}\n\n'
            f"Lecture content:\n{lecture_text[:MAX_LECTURE_CHARS]}"
        )
        data, _ = await self._chat_json(OUTLINE_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=2000)
        return [
            GeneratedSegment(
                title=str(item.get("title") or "").strip(),
                description=str(item.get("segment_description") or item.get("description") or "").strip(),
            )
            for item in data.get("segments") or []
        ]

    async def generate_segment_content(
        self,
        sequence_number: int,
        segment_title: str,
        segment_description: str,
        lecture_text: str,
    ) -> Tuple[SegmentContent, str]:
        """
        Generate two theory slides and two questions for a segment.

        Returns:
            (content, model_used)
        """
        if not self.settings.openai_configured:
            return self._stub_content(sequence_number, segment_title), "stub"

        prompt = (
            f'Segment {sequence_number}: "{segment_title}"\n'
            f"Segment description: {segment_description}\n\n"
            "Write two theory slides (markdown, 150-250 words each) that teach this "
            "segment, then two questions about them: the first multiple choice with "
            "exactly 4 options, the second true/false.\n\n"
            "Return JSON with keys: theory_slide_1, theory_slide_2, "
            "quiz_1_question, quiz_1_options (list of 4 strings), "
            "quiz_1_correct_answer (one of the options), quiz_1_explanation, "
            "quiz_2_question, quiz_2_correct_answer (true or false), quiz_2_explanation.\n\n"
            f"Lecture content:\n{lecture_text[:MAX_LECTURE_CHARS]}"
        )
        data, model = await self._chat_json(CONTENT_SYSTEM_PROMPT, prompt, temperature=0.5, max_tokens=2500)
        return self._parse_content(sequence_number, data), model

    # ── OpenAI ───────────────────────────────────────────────────────────

    async def _chat_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> Tuple[Dict[str, Any], str]:
        """Single JSON-mode chat completion. Raises on transport or parse errors."""
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=self.settings.openai_api_key, max_retries=0)
        model = self.settings.openai_model
        start = time.perf_counter()
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=temperature,
            max_tokens=max_tokens,
        )
        raw = (response.choices[0].message.content or "").strip()
        logger.info(
            "LLM call finished",
            extra={"model": model, "duration_ms": int((time.perf_counter() - start) * 1000)},
        )
        return json.loads(raw), model

    @staticmethod
    def _parse_content(sequence_number: int, data: Dict[str, Any]) -> SegmentContent:
        # Only real booleans and the words true/false count; anything else is
        # passed through for validation to reject
        tf_answer = data.get("quiz_2_correct_answer")
        if isinstance(tf_answer, str) and tf_answer.strip().lower() in ("true", "false"):
            tf_answer = tf_answer.strip().lower() == "true"
        elif not isinstance(tf_answer, bool):
            tf_answer = "" if tf_answer is None else str(tf_answer)
        return SegmentContent(
            sequence_number=sequence_number,
            slides=[
                str(data.get("theory_slide_1") or ""),
                str(data.get("theory_slide_2") or ""),
            ],
            questions=[
                Question(
                    type=QuestionType.MULTIPLE_CHOICE,
                    prompt=str(data.get("quiz_1_question") or ""),
                    options=[str(o) for o in data.get("quiz_1_options") or []],
                    correct_answer=str(data.get("quiz_1_correct_answer") or ""),
                    explanation=str(data.get("quiz_1_explanation") or ""),
                ),
                Question(
                    type=QuestionType.TRUE_FALSE,
                    prompt=str(data.get("quiz_2_question") or ""),
                    options=["True", "False"],
                    correct_answer=tf_answer,
                    explanation=str(data.get("quiz_2_explanation") or ""),
                ),
            ],
        )

    # ── stubs ────────────────────────────────────────────────────────────

    @staticmethod
    def _stub_outline(lecture_title: str) -> List[GeneratedSegment]:
        """STUB: fixed five-part outline used when no API key is configured."""
        parts = ["Key Concepts", "Core Definitions", "Worked Examples", "Common Pitfalls", "Summary"]
        return [
            GeneratedSegment(
                title=f"{lecture_title}: {part}",
                description=f"[Stub segment] {part} of {lecture_title}.",
            )
            for part in parts
        ]

    @staticmethod
    def _stub_content(sequence_number: int, segment_title: str) -> SegmentContent:
        """STUB: placeholder slides and questions."""
        return SegmentContent(
            sequence_number=sequence_number,
            slides=[
                f"## {segment_title}\n\n[Stub theory slide 1 - generated content would appear here]",
                f"## {segment_title} (continued)\n\n[Stub theory slide 2]",
            ],
            questions=[
                Question(
                    type=QuestionType.MULTIPLE_CHOICE,
                    prompt="Which segment are you studying?",
                    options=[segment_title, "None of these", "All of these", "Not sure"],
                    correct_answer=segment_title,
                    explanation="The segment title is shown at the top of each slide.",
                ),
                Question(
                    type=QuestionType.TRUE_FALSE,
                    prompt="Story mode segments end with two questions.",
                    options=["True", "False"],
                    correct_answer=True,
                    explanation="Every segment has two theory slides followed by two questions.",
                ),
            ],
        )
