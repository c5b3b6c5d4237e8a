"""
System smoke test for the story mode API.

Runs the FastAPI app in-process against a temp-file SQLite database with the
placeholder generator and walks a learner through the first segment.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Use file-based SQLite so all connections share the same DB
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret-key-for-story-mode-tests-only"
from storymode.config import get_settings
get_settings.cache_clear()

from storymode.ai.story_generator import StoryGenerator
from storymode.database import get_db
from storymode.engines.story.content_provider import ContentProvider
from storymode.engines.story.progress_store import SqlProgressStore
from storymode.engines.story.session import StorySessionRegistry
from storymode.kernel.identity.jwt import TokenVerifier
from storymode.kernel.models import Base, Lecture
from storymode.main import app


TEST_ENGINE = create_async_engine(
    f"sqlite+aiosqlite:///{TEST_DB_PATH}",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=NullPool,
)
TEST_SESSION_MAKER = async_sessionmaker(
    TEST_ENGINE,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _headers(user_id: uuid.UUID) -> dict:
    token = TokenVerifier().issue(user_id, email="learner@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client():
    """Async client with test DB, placeholder generator and rate limit disabled."""
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # ASGITransport does not run the lifespan; wire the collaborators it would build
    progress_store = SqlProgressStore(TEST_SESSION_MAKER)
    content_provider = ContentProvider(TEST_SESSION_MAKER, generator=StoryGenerator(get_settings()))
    app.state.progress_store = progress_store
    app.state.content_provider = content_provider
    app.state.story_sessions = StorySessionRegistry(content_provider, progress_store)
    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def lecture_id(client) -> int:
    async with TEST_SESSION_MAKER() as session:
        lecture = Lecture(
            title="Cell Biology",
            content="Cells are the basic unit of life. Membranes separate the cell from its surroundings.",
        )
        session.add(lecture)
        await session.commit()
        await session.refresh(lecture)
        return lecture.id


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """Health endpoint responds."""
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert data["ai_configured"] is False
    assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_requires_token(client: AsyncClient, lecture_id: int):
    r = await client.get(f"/api/v1/lectures/{lecture_id}/story/segments")
    assert r.status_code == 401

    r = await client.get(
        f"/api/v1/lectures/{lecture_id}/story/segments",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_unknown_lecture(client: AsyncClient):
    r = await client.get("/api/v1/lectures/99999/story/segments", headers=_headers(uuid.uuid4()))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_study_plan(client: AsyncClient):
    r = await client.get("/api/v1/lectures/3/study-plan", headers=_headers(uuid.uuid4()))
    assert r.status_code == 200
    steps = r.json()["steps"]
    assert len(steps) == 6
    assert steps[0]["route"] == "highlights"
    assert steps[1]["action"] == "story"


@pytest.mark.asyncio
async def test_full_story_flow(client: AsyncClient, lecture_id: int):
    """Segments -> pathway -> locked node -> master segment 1 -> segment 2 unlocked."""
    user = uuid.uuid4()
    headers = _headers(user)
    base = f"/api/v1/lectures/{lecture_id}/story"

    r = await client.get(f"{base}/segments", headers=headers)
    assert r.status_code == 200, r.text
    segments = r.json()["segments"]
    assert [s["sequence_number"] for s in segments] == [1, 2, 3, 4, 5]

    r = await client.get(f"{base}/segments/1/content", headers=headers)
    assert r.status_code == 200, r.text
    content = r.json()
    assert len(content["slides"]) == 2
    assert len(content["questions"]) == 2

    r = await client.get(f"{base}/pathway", headers=headers)
    statuses = [n["status"] for n in r.json()["nodes"]]
    assert statuses == ["available", "locked", "locked", "locked", "locked"]

    # Segment 2 is locked until segment 1 is mastered
    r = await client.post(f"{base}/segments/2/session", headers=headers)
    assert r.status_code == 423
    detail = r.json()["detail"]
    assert detail["notification"]["kind"] == "node_locked"
    assert "Complete" in detail["message"]

    r = await client.post(f"{base}/segments/1/session", headers=headers)
    assert r.status_code == 200, r.text
    state = r.json()
    session_id = state["session_id"]
    assert state["current_step"] == 0
    assert state["step_kind"] == "theory"
    assert state["max_score"] == 10

    # Answering on a theory slide is rejected
    r = await client.post(f"/api/v1/story/sessions/{session_id}/answer", json={"is_correct": True}, headers=headers)
    assert r.status_code == 400

    for expected in (1, 2):
        r = await client.post(f"/api/v1/story/sessions/{session_id}/continue", headers=headers)
        assert r.status_code == 200
        assert r.json()["session"]["current_step"] == expected
    assert r.json()["session"]["step_kind"] == "question"

    r = await client.post(f"/api/v1/story/sessions/{session_id}/answer", json={"is_correct": True}, headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["session"]["score"] == 5
    assert data["session"]["current_step"] == 3
    assert [n["kind"] for n in data["notifications"]] == ["correct_answer"]

    # Second question is true/false; graded server-side
    r = await client.post(f"/api/v1/story/sessions/{session_id}/answer", json={"answer": "true"}, headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert [n["kind"] for n in data["notifications"]] == ["correct_answer", "node_completed"]
    assert data["session"]["mastered"] is True
    assert data["session"]["persisted"] is True
    assert data["session"]["stored_progress"]["score"] == 10
    assert data["session"]["stored_progress"]["completed_at"] is not None

    r = await client.get(f"{base}/progress", headers=headers)
    progress = r.json()
    assert progress["completed_count"] == 1
    assert progress["total_score"] == 10

    r = await client.get(f"{base}/pathway", headers=headers)
    statuses = [n["status"] for n in r.json()["nodes"]]
    assert statuses[:3] == ["completed", "available", "locked"]

    r = await client.post(f"{base}/segments/2/session", headers=headers)
    assert r.status_code == 200
    assert r.json()["session_id"] == session_id
    assert r.json()["segment"]["sequence_number"] == 2


@pytest.mark.asyncio
async def test_wrong_answer_and_restart(client: AsyncClient, lecture_id: int):
    headers = _headers(uuid.uuid4())
    r = await client.post(f"/api/v1/lectures/{lecture_id}/story/segments/1/session", headers=headers)
    session_id = r.json()["session_id"]
    for _ in range(2):
        await client.post(f"/api/v1/story/sessions/{session_id}/continue", headers=headers)

    r = await client.post(f"/api/v1/story/sessions/{session_id}/answer", json={"is_correct": False}, headers=headers)
    data = r.json()
    assert data["session"]["score"] == 0
    assert data["session"]["current_step"] == 0
    assert data["session"]["failed_questions"] == [0]
    assert data["notifications"][0]["title"] == "Let's review!"

    r = await client.post(f"/api/v1/story/sessions/{session_id}/restart", headers=headers)
    assert r.status_code == 200
    assert r.json()["session"]["current_step"] == 0
    assert r.json()["notifications"] == []


@pytest.mark.asyncio
async def test_sessions_are_private(client: AsyncClient, lecture_id: int):
    owner = _headers(uuid.uuid4())
    r = await client.post(f"/api/v1/lectures/{lecture_id}/story/segments/1/session", headers=owner)
    session_id = r.json()["session_id"]

    r = await client.get(f"/api/v1/story/sessions/{session_id}", headers=_headers(uuid.uuid4()))
    assert r.status_code == 404

    r = await client.get(f"/api/v1/story/sessions/{session_id}", headers=owner)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_answer_body_validation(client: AsyncClient, lecture_id: int):
    headers = _headers(uuid.uuid4())
    r = await client.post(f"/api/v1/lectures/{lecture_id}/story/segments/1/session", headers=headers)
    session_id = r.json()["session_id"]

    r = await client.post(f"/api/v1/story/sessions/{session_id}/answer", json={}, headers=headers)
    assert r.status_code == 422
    assert r.json()["detail"] == "Validation error"
