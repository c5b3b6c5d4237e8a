"""Unit tests for the default study plan."""

import pytest

from storymode.pedagogy.study_plan import (
    LearningAction,
    action_icon,
    default_study_plan,
    lecture_route,
    route_segment,
)


class TestStudyPlan:
    """Steps, routes and icons."""

    def test_default_plan_order(self):
        plan = default_study_plan()
        assert [s.step for s in plan] == [1, 2, 3, 4, 5, 6]
        assert [s.action for s in plan] == [
            LearningAction.SUMMARY,
            LearningAction.STORY,
            LearningAction.CHAT,
            LearningAction.FLASHCARDS,
            LearningAction.QUIZ,
            LearningAction.RESOURCES,
        ]

    def test_default_plan_is_a_copy(self):
        plan = default_study_plan()
        plan[0].benefits.append("edited")
        assert "edited" not in default_study_plan()[0].benefits

    @pytest.mark.parametrize("action", list(LearningAction))
    def test_every_action_has_route_and_icon(self, action):
        assert route_segment(action)
        assert action_icon(action)

    def test_summary_and_quiz_routes(self):
        assert route_segment(LearningAction.SUMMARY) == "highlights"
        assert route_segment(LearningAction.QUIZ) == "take-quiz"

    def test_lecture_route(self):
        assert lecture_route("bio101", 4, LearningAction.STORY) == "/course/bio101/lecture/4/story"

    def test_unknown_action_raises(self):
        with pytest.raises(ValueError):
            route_segment("not-an-action")
