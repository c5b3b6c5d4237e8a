"""Story mode schema - lectures, segments, segment content, user progress

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Lectures (written by the upload pipeline; read here)
    op.create_table(
        'lectures',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Generated pathway nodes
    op.create_table(
        'lecture_segments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lecture_id', sa.Integer(), sa.ForeignKey('lectures.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('lecture_id', 'sequence_number', name='uq_lecture_segments_lecture_seq'),
    )

    # Cached slides and questions per segment
    op.create_table(
        'segment_contents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lecture_id', sa.Integer(), sa.ForeignKey('lectures.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('slides', sa.JSON(), nullable=False),
        sa.Column('questions', sa.JSON(), nullable=False),
        sa.Column('model_used', sa.String(100), nullable=False, server_default='stub'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('lecture_id', 'sequence_number', name='uq_segment_contents_lecture_seq'),
    )

    # Learner progress; user ids come from the auth platform, no FK
    op.create_table(
        'user_progress',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('lecture_id', sa.Integer(), sa.ForeignKey('lectures.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('segment_number', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'lecture_id', 'segment_number', name='uq_user_progress_user_lecture_segment'),
        sa.CheckConstraint('score >= 0 AND score <= 10', name='ck_user_progress_score_range'),
    )


def downgrade() -> None:
    op.drop_table('user_progress')
    op.drop_table('segment_contents')
    op.drop_table('lecture_segments')
    op.drop_table('lectures')
