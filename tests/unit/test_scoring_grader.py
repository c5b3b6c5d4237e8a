"""Unit tests for XP scoring and the answer grader."""

import pytest

from storymode.engines.story.content import Question, QuestionType
from storymode.engines.story.grader import Grader
from storymode.engines.story.scoring import (
    MAX_SCORE,
    MASTERY_THRESHOLD,
    TOTAL_QUESTIONS_PER_SEGMENT,
    calculate_new_score,
    is_mastered,
)


class TestScoring:
    """XP awards and the mastery threshold."""

    def test_award_is_five(self):
        assert calculate_new_score(0) == 5
        assert calculate_new_score(5) == 10

    def test_capped_at_max(self):
        assert calculate_new_score(MAX_SCORE) == MAX_SCORE

    def test_every_reachable_score_gets_the_award(self):
        scores = [0]
        for _ in range(TOTAL_QUESTIONS_PER_SEGMENT + 1):
            scores.append(calculate_new_score(scores[-1]))
        assert scores == [0, 5, 10, 10]

    def test_mastery_threshold(self):
        assert MASTERY_THRESHOLD == 10
        assert is_mastered(10) is True
        assert is_mastered(5) is False
        assert is_mastered(0) is False


class TestGrader:
    """Server-side grading of multiple-choice and true/false answers."""

    @pytest.fixture
    def mc(self) -> Question:
        return Question(
            type=QuestionType.MULTIPLE_CHOICE,
            prompt="Which organelle performs photosynthesis?",
            options=["Mitochondrion", "Chloroplast", "Ribosome", "Vacuole"],
            correct_answer="Chloroplast",
            explanation="Chloroplasts hold the photosynthetic machinery.",
        )

    @pytest.fixture
    def tf(self) -> Question:
        return Question(
            type=QuestionType.TRUE_FALSE,
            prompt="Plants release oxygen during photosynthesis.",
            options=["True", "False"],
            correct_answer=True,
            explanation="Oxygen comes from splitting water.",
        )

    def test_multiple_choice_exact(self, mc):
        assert Grader.grade(mc, "Chloroplast") is True

    def test_multiple_choice_case_and_whitespace(self, mc):
        assert Grader.grade(mc, "  chloroplast ") is True

    def test_multiple_choice_wrong(self, mc):
        assert Grader.grade(mc, "Ribosome") is False

    def test_multiple_choice_empty(self, mc):
        assert Grader.grade(mc, "") is False

    @pytest.mark.parametrize("answer", [True, "true", "True", "yes", "verdadero", "1"])
    def test_true_false_truthy(self, tf, answer):
        assert Grader.grade(tf, answer) is True

    @pytest.mark.parametrize("answer", [False, "false", "no", "falso", "maybe"])
    def test_true_false_not_matching(self, tf, answer):
        assert Grader.grade(tf, answer) is False

    def test_true_false_string_correct_answer(self, tf):
        tf.correct_answer = "False"
        assert Grader.grade(tf, False) is True
        assert Grader.grade(tf, "true") is False
