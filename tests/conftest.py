"""
Pytest fixtures for story mode tests.
"""

import os
import uuid
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Keep tests off the network and away from any local .env key
os.environ["OPENAI_API_KEY"] = ""

from storymode.engines.story.content import Question, QuestionType, Segment, SegmentContent
from storymode.kernel.models import Base, Lecture


LECTURE_TEXT = (
    "Photosynthesis converts light energy into chemical energy. The light-dependent "
    "reactions take place in the thylakoid membranes and produce ATP and NADPH. The "
    "Calvin cycle uses that ATP and NADPH to fix carbon dioxide into sugars."
)


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine so every session sees the same database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'story.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def lecture(session_maker) -> Lecture:
    """A lecture with extracted text."""
    async with session_maker() as session:
        row = Lecture(title="Photosynthesis", content=LECTURE_TEXT)
        session.add(row)
        await session.commit()
        await session.refresh(row)
        return row


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def segment() -> Segment:
    return Segment(
        id=str(uuid.uuid4()),
        sequence_number=1,
        title="Light Reactions",
        description="How light energy becomes ATP and NADPH",
    )


@pytest.fixture
def segment_content() -> SegmentContent:
    return SegmentContent(
        sequence_number=1,
        slides=[
            "Light-dependent reactions happen in the thylakoid membranes.",
            "They produce ATP and NADPH for the Calvin cycle.",
        ],
        questions=[
            Question(
                type=QuestionType.MULTIPLE_CHOICE,
                prompt="Where do the light-dependent reactions take place?",
                options=["Stroma", "Thylakoid membranes", "Cytoplasm", "Nucleus"],
                correct_answer="Thylakoid membranes",
                explanation="The photosystems sit in the thylakoid membranes.",
            ),
            Question(
                type=QuestionType.TRUE_FALSE,
                prompt="The Calvin cycle produces ATP.",
                options=["True", "False"],
                correct_answer=False,
                explanation="The Calvin cycle consumes ATP made by the light reactions.",
            ),
        ],
    )


@pytest.fixture
def segments() -> List[Segment]:
    """Three ordered pathway segments."""
    return [
        Segment(id=str(uuid.uuid4()), sequence_number=n, title=f"Part {n}", description="")
        for n in (1, 2, 3)
    ]
