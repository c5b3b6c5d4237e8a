"""
API v1 routes.
"""

from fastapi import APIRouter

from storymode.api.v1 import story, study_plan

router = APIRouter()

router.include_router(story.router, tags=["Story Mode"])
router.include_router(study_plan.router, tags=["Study Plan"])
