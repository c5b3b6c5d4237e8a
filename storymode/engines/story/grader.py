"""
Grader - server-side checking of a learner's answer to a segment question.
"""

from typing import Union

from storymode.engines.story.content import Question, QuestionType

_TRUE_WORDS = {"true", "t", "yes", "verdadero", "1"}
_FALSE_WORDS = {"false", "f", "no", "falso", "0"}


def _as_bool(value: Union[bool, str]) -> Union[bool, None]:
    if isinstance(value, bool):
        return value
    normalized = (value or "").strip().lower()
    if normalized in _TRUE_WORDS:
        return True
    if normalized in _FALSE_WORDS:
        return False
    return None


class Grader:
    """
    Grades multiple-choice and true/false answers.

    Multiple choice: case-insensitive match against the correct option text.
    True/false: the answer is read as a boolean and compared.
    """

    @classmethod
    def grade(cls, question: Question, user_answer: Union[bool, str]) -> bool:
        if question.type == QuestionType.TRUE_FALSE:
            expected = _as_bool(question.correct_answer)
            given = _as_bool(user_answer)
            return expected is not None and given is expected

        expected_text = str(question.correct_answer).strip().lower()
        given_text = str(user_answer).strip().lower()
        return bool(given_text) and given_text == expected_text
