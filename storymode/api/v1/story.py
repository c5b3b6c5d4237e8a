"""
Story mode endpoints - segments, pathway, progress and the step-by-step
session a learner walks through for each segment.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, status

from storymode.api.deps import Content, CurrentUserId, Progress, StorySessions
from storymode.engines.story import notifications as notify
from storymode.engines.story.content import Segment
from storymode.engines.story.errors import (
    ActionInProgressError,
    ContentGenerationError,
    GenerationRateLimitError,
    LectureNotFoundError,
    SegmentLockedError,
    SegmentNotFoundError,
    SessionNotFoundError,
    StoryError,
)
from storymode.engines.story.notifications import Notification
from storymode.engines.story.pathway import build_pathway
from storymode.engines.story.progress_store import PersistedProgress
from storymode.engines.story.scoring import MAX_SCORE
from storymode.engines.story.session import StorySession
from storymode.schemas.story import (
    AnswerRequest,
    NotificationSchema,
    PathwayNodeResponse,
    PathwayResponse,
    ProgressListResponse,
    ProgressResponse,
    QuestionSchema,
    SegmentContentResponse,
    SegmentListResponse,
    SegmentSchema,
    StoryActionResponse,
    StorySessionResponse,
)

router = APIRouter()


def _http_error(exc: StoryError) -> HTTPException:
    """Map a story engine error to the HTTP error the client sees."""
    if isinstance(exc, SegmentLockedError):
        locked = notify.node_locked(str(exc))
        return HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail={
                "message": str(exc),
                "notification": NotificationSchema(**locked.model_dump(mode="json")).model_dump(),
            },
        )
    if isinstance(exc, GenerationRateLimitError):
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
    if isinstance(exc, ContentGenerationError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to load story content. Please go back and try again.",
        )
    if isinstance(exc, (LectureNotFoundError, SegmentNotFoundError, SessionNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ActionInProgressError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    # InvalidStepError
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _segment_to_schema(segment: Segment) -> SegmentSchema:
    return SegmentSchema(
        id=segment.id,
        sequence_number=segment.sequence_number,
        title=segment.title,
        description=segment.description,
    )


def _progress_to_schema(p: Optional[PersistedProgress]) -> Optional[ProgressResponse]:
    if p is None:
        return None
    return ProgressResponse(segment_number=p.segment_number, score=p.score, completed_at=p.completed_at)


def _notifications_to_schema(items: List[Notification]) -> List[NotificationSchema]:
    return [NotificationSchema(**n.model_dump(mode="json")) for n in items]


def _session_to_schema(session: StorySession) -> StorySessionResponse:
    engine = session.active
    if engine is None:
        return StorySessionResponse(
            session_id=session.id,
            lecture_id=session.lecture_id,
            max_score=MAX_SCORE,
        )
    state = engine.state
    return StorySessionResponse(
        session_id=session.id,
        lecture_id=session.lecture_id,
        segment=_segment_to_schema(engine.segment),
        current_step=state.current_step,
        step_kind="question" if state.is_question_step else "theory",
        score=state.score,
        max_score=MAX_SCORE,
        failed_questions=sorted(state.failed_questions),
        attempt=state.attempt,
        mastered=state.mastered,
        persisted=state.persisted,
        busy=engine.busy,
        stored_progress=_progress_to_schema(session.stored_progress),
    )


def _action_response(session: StorySession, items: List[Notification]) -> StoryActionResponse:
    return StoryActionResponse(
        session=_session_to_schema(session),
        notifications=_notifications_to_schema(items),
    )


# ── lecture-level reads ──────────────────────────────────────────────────


@router.get("/lectures/{lecture_id}/story/segments", response_model=SegmentListResponse)
async def list_segments(lecture_id: int, _: CurrentUserId, content: Content):
    """Ordered segments of a lecture, generated on first request."""
    try:
        segments = await content.get_segments(lecture_id)
    except StoryError as e:
        raise _http_error(e)
    return SegmentListResponse(
        lecture_id=lecture_id,
        segments=[_segment_to_schema(s) for s in segments],
    )


@router.get(
    "/lectures/{lecture_id}/story/segments/{sequence_number}/content",
    response_model=SegmentContentResponse,
)
async def get_segment_content(
    lecture_id: int,
    sequence_number: int,
    _: CurrentUserId,
    content: Content,
):
    """Slides and questions for one segment, including answers and explanations."""
    try:
        segment = await content.get_segment(lecture_id, sequence_number)
        seg_content = await content.get_segment_content(
            lecture_id, sequence_number, segment.title, segment.description
        )
    except StoryError as e:
        raise _http_error(e)
    return SegmentContentResponse(
        lecture_id=lecture_id,
        sequence_number=sequence_number,
        slides=seg_content.slides,
        questions=[
            QuestionSchema(
                type=q.type.value,
                prompt=q.prompt,
                options=q.options,
                correct_answer=q.correct_answer,
                explanation=q.explanation,
            )
            for q in seg_content.questions
        ],
    )


@router.get("/lectures/{lecture_id}/story/pathway", response_model=PathwayResponse)
async def get_pathway(
    lecture_id: int,
    user_id: CurrentUserId,
    content: Content,
    progress_store: Progress,
):
    """Segments with the caller's completed / available / locked status."""
    try:
        segments = await content.get_segments(lecture_id)
    except StoryError as e:
        raise _http_error(e)
    progress = await progress_store.list_progress(user_id, lecture_id)
    return PathwayResponse(
        lecture_id=lecture_id,
        nodes=[
            PathwayNodeResponse(
                segment=_segment_to_schema(node.segment),
                status=node.status.value,
                score=node.score,
                completed_at=node.completed_at,
                prerequisite=node.prerequisite,
            )
            for node in build_pathway(segments, progress)
        ],
    )


@router.get("/lectures/{lecture_id}/story/progress", response_model=ProgressListResponse)
async def get_progress(lecture_id: int, user_id: CurrentUserId, progress_store: Progress):
    """The caller's stored progress rows for a lecture."""
    rows = await progress_store.list_progress(user_id, lecture_id)
    return ProgressListResponse(
        lecture_id=lecture_id,
        completed_count=sum(1 for p in rows if p.completed),
        total_score=sum(p.score for p in rows),
        progress=[_progress_to_schema(p) for p in rows],
    )


# ── sessions ─────────────────────────────────────────────────────────────


@router.post(
    "/lectures/{lecture_id}/story/segments/{sequence_number}/session",
    response_model=StorySessionResponse,
)
async def enter_segment(
    lecture_id: int,
    sequence_number: int,
    user_id: CurrentUserId,
    sessions: StorySessions,
):
    """Enter a segment at its first slide. 423 if the previous segment is not mastered."""
    session = sessions.get_or_create(user_id, lecture_id)
    try:
        await session.enter_segment(sequence_number)
    except StoryError as e:
        raise _http_error(e)
    return _session_to_schema(session)


@router.get("/story/sessions/{session_id}", response_model=StorySessionResponse)
async def get_session(session_id: str, user_id: CurrentUserId, sessions: StorySessions):
    """Current state of a story session."""
    try:
        session = sessions.get(session_id, user_id)
    except StoryError as e:
        raise _http_error(e)
    return _session_to_schema(session)


@router.post("/story/sessions/{session_id}/continue", response_model=StoryActionResponse)
async def continue_session(session_id: str, user_id: CurrentUserId, sessions: StorySessions):
    """Advance one step; past the last question the cycle is evaluated."""
    try:
        session = sessions.get(session_id, user_id)
        items = session.continue_()
    except StoryError as e:
        raise _http_error(e)
    return _action_response(session, items)


@router.post("/story/sessions/{session_id}/answer", response_model=StoryActionResponse)
async def answer_question(
    session_id: str,
    data: AnswerRequest,
    user_id: CurrentUserId,
    sessions: StorySessions,
):
    """Answer the current question, pre-graded (is_correct) or graded here (answer)."""
    try:
        session = sessions.get(session_id, user_id)
        items = await session.answer(is_correct=data.is_correct, answer=data.answer)
    except StoryError as e:
        raise _http_error(e)
    return _action_response(session, items)


@router.post("/story/sessions/{session_id}/restart", response_model=StoryActionResponse)
async def restart_session(session_id: str, user_id: CurrentUserId, sessions: StorySessions):
    """Start the current segment over from its first slide."""
    try:
        session = sessions.get(session_id, user_id)
        session.restart()
    except StoryError as e:
        raise _http_error(e)
    return _action_response(session, [])
