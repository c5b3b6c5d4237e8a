"""
FastAPI dependencies for the caller's identity and story collaborators.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storymode.database import get_db
from storymode.engines.story.content_provider import ContentProvider
from storymode.engines.story.progress_store import ProgressStore
from storymode.engines.story.session import StorySessionRegistry
from storymode.kernel.identity.jwt import verify_access_token

security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> uuid.UUID:
    """Learner id from the bearer token, or 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload.sub


CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]


def get_story_sessions(request: Request) -> StorySessionRegistry:
    return request.app.state.story_sessions


def get_content_provider(request: Request) -> ContentProvider:
    return request.app.state.content_provider


def get_progress_store(request: Request) -> ProgressStore:
    return request.app.state.progress_store


StorySessions = Annotated[StorySessionRegistry, Depends(get_story_sessions)]
Content = Annotated[ContentProvider, Depends(get_content_provider)]
Progress = Annotated[ProgressStore, Depends(get_progress_store)]
