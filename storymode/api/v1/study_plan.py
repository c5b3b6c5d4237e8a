"""
Study plan endpoint - the default learning steps for a lecture.
"""

from fastapi import APIRouter

from storymode.api.deps import CurrentUserId
from storymode.pedagogy.study_plan import action_icon, default_study_plan, route_segment
from storymode.schemas.study_plan import StudyPlanResponse, StudyPlanStepResponse

router = APIRouter()


@router.get("/lectures/{lecture_id}/study-plan", response_model=StudyPlanResponse)
async def get_study_plan(lecture_id: int, _: CurrentUserId):
    """Default study plan; each step carries the client route and icon for its action."""
    return StudyPlanResponse(
        lecture_id=lecture_id,
        steps=[
            StudyPlanStepResponse(
                step=s.step,
                title=s.title,
                description=s.description,
                action=s.action.value,
                time_estimate=s.time_estimate,
                benefits=s.benefits,
                route=route_segment(s.action),
                icon=action_icon(s.action),
            )
            for s in default_study_plan()
        ],
    )
