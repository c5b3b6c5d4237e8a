"""
XP rules for story segments.

Each segment cycle has two questions worth 5 XP each; a segment is mastered
at 10 XP, i.e. both questions correct within one uninterrupted attempt.
"""

POINTS_PER_CORRECT_ANSWER = 5
TOTAL_QUESTIONS_PER_SEGMENT = 2
MAX_SCORE = POINTS_PER_CORRECT_ANSWER * TOTAL_QUESTIONS_PER_SEGMENT
MASTERY_THRESHOLD = MAX_SCORE


def calculate_new_score(current_score: int) -> int:
    """Award XP for a correct answer, never exceeding MAX_SCORE."""
    return min(current_score + POINTS_PER_CORRECT_ANSWER, MAX_SCORE)


def is_mastered(score: int) -> bool:
    """True when a score meets the mastery threshold."""
    return score >= MASTERY_THRESHOLD
