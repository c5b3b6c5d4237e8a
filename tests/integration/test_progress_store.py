"""Integration tests for the SQL progress store (SQLite via aiosqlite)."""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from storymode.engines.story.progress_store import SqlProgressStore


class TestSqlProgressStore:
    """Upsert semantics and completed_at stamping."""

    @pytest.mark.asyncio
    async def test_read_missing(self, session_maker, lecture, user_id):
        store = SqlProgressStore(session_maker)
        assert await store.read_progress(user_id, lecture.id, 1) is None

    @pytest.mark.asyncio
    async def test_mastery_write_sets_completed_at(self, session_maker, lecture, user_id):
        store = SqlProgressStore(session_maker)

        saved = await store.write_progress(user_id, lecture.id, 1, 10)

        assert saved.score == 10
        assert saved.completed is True
        stored = await store.read_progress(user_id, lecture.id, 1)
        assert stored.completed_at is not None

    @pytest.mark.asyncio
    async def test_partial_write_not_completed(self, session_maker, lecture, user_id):
        store = SqlProgressStore(session_maker)
        saved = await store.write_progress(user_id, lecture.id, 2, 5)
        assert saved.completed is False

    @pytest.mark.asyncio
    async def test_rewrite_keeps_one_row_and_first_completion(self, session_maker, lecture, user_id):
        store = SqlProgressStore(session_maker)
        first = await store.write_progress(user_id, lecture.id, 1, 10)

        second = await store.write_progress(user_id, lecture.id, 1, 10)
        lowered = await store.write_progress(user_id, lecture.id, 1, 0)

        rows = await store.list_progress(user_id, lecture.id)
        assert len(rows) == 1
        assert second.completed_at == first.completed_at
        assert lowered.completed_at == first.completed_at
        assert lowered.score == 0

    @pytest.mark.asyncio
    async def test_list_is_per_user_and_ordered(self, session_maker, lecture, user_id):
        store = SqlProgressStore(session_maker)
        other = uuid.uuid4()
        await store.write_progress(user_id, lecture.id, 2, 10)
        await store.write_progress(user_id, lecture.id, 1, 10)
        await store.write_progress(other, lecture.id, 1, 10)

        rows = await store.list_progress(user_id, lecture.id)

        assert [r.segment_number for r in rows] == [1, 2]

    @pytest.mark.asyncio
    async def test_score_outside_range_rejected(self, session_maker, lecture, user_id):
        store = SqlProgressStore(session_maker)

        with pytest.raises(IntegrityError):
            await store.write_progress(user_id, lecture.id, 1, 15)
        with pytest.raises(IntegrityError):
            await store.write_progress(user_id, lecture.id, 1, -5)

        assert await store.read_progress(user_id, lecture.id, 1) is None
