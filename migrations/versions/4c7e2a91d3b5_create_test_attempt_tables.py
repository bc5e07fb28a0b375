"""Create test catalog, attempt and user answer tables

Revision ID: 4c7e2a91d3b5
Revises: 
Create Date: 2026-10-19 09:12:44.103215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '4c7e2a91d3b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('tests',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('title', sa.String(), nullable=False),
    sa.Column('description', sa.String(), nullable=True),
    sa.Column('type', sa.Enum('ENTRY', 'FINAL', 'ANNUAL', name='testtypeenum'), nullable=False),
    sa.Column('time_limit', sa.Integer(), nullable=False),
    sa.Column('passing_score', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tests_id'), 'tests', ['id'], unique=False)
    op.create_index(op.f('ix_tests_title'), 'tests', ['title'], unique=False)

    op.create_table('test_questions',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('test_id', sa.Integer(), nullable=False),
    sa.Column('question', sa.String(), nullable=False),
    sa.Column('question_type', sa.Enum('SINGLE_CHOICE', 'MULTIPLE_CHOICE', 'SEQUENCE', 'TEXT', name='questiontypeenum'), nullable=False),
    sa.Column('points', sa.Integer(), nullable=False),
    sa.Column('order', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['test_id'], ['tests.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_test_questions_id'), 'test_questions', ['id'], unique=False)
    op.create_index(op.f('ix_test_questions_test_id'), 'test_questions', ['test_id'], unique=False)

    op.create_table('test_answers',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('question_id', sa.Integer(), nullable=False),
    sa.Column('text', sa.String(), nullable=False),
    sa.Column('is_correct', sa.Boolean(), nullable=False),
    sa.Column('order', sa.Integer(), nullable=False),
    sa.ForeignKeyConstraint(['question_id'], ['test_questions.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_test_answers_id'), 'test_answers', ['id'], unique=False)
    op.create_index(op.f('ix_test_answers_question_id'), 'test_answers', ['question_id'], unique=False)

    op.create_table('test_sequence_answers',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('question_id', sa.Integer(), nullable=False),
    sa.Column('answer_text', sa.String(), nullable=False),
    sa.Column('answer_order', sa.Integer(), nullable=False),
    sa.ForeignKeyConstraint(['question_id'], ['test_questions.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_test_sequence_answers_id'), 'test_sequence_answers', ['id'], unique=False)
    op.create_index(op.f('ix_test_sequence_answers_question_id'), 'test_sequence_answers', ['question_id'], unique=False)

    op.create_table('user_test_attempts',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('user_id', sa.Integer(), nullable=False),
    sa.Column('test_id', sa.Integer(), nullable=False),
    sa.Column('event_id', sa.Integer(), nullable=False),
    sa.Column('status', sa.Enum('IN_PROGRESS', 'COMPLETED', name='attemptstatusenum'), nullable=False, server_default='IN_PROGRESS'),
    sa.Column('score', sa.Integer(), nullable=True),
    sa.Column('passed', sa.Boolean(), nullable=True),
    sa.Column('pending_review', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('max_score', sa.Integer(), nullable=True),
    sa.Column('earned_points', sa.Integer(), nullable=True),
    sa.Column('start_time', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['test_id'], ['tests.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_test_attempts_id'), 'user_test_attempts', ['id'], unique=False)
    op.create_index(op.f('ix_user_test_attempts_user_id'), 'user_test_attempts', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_test_attempts_test_id'), 'user_test_attempts', ['test_id'], unique=False)
    op.create_index(op.f('ix_user_test_attempts_event_id'), 'user_test_attempts', ['event_id'], unique=False)
    op.create_index(
        'uq_user_test_attempts_open',
        'user_test_attempts',
        ['user_id', 'test_id', 'event_id'],
        unique=True,
        sqlite_where=sa.text("status = 'IN_PROGRESS'"),
        postgresql_where=sa.text("status = 'IN_PROGRESS'"),
    )

    op.create_table('user_test_answers',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('attempt_id', sa.Integer(), nullable=False),
    sa.Column('question_id', sa.Integer(), nullable=False),
    sa.Column('answer_id', sa.Integer(), nullable=True),
    sa.Column('text_answer', sa.String(), nullable=True),
    sa.Column('user_order', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    sa.ForeignKeyConstraint(['attempt_id'], ['user_test_attempts.id'], ),
    sa.ForeignKeyConstraint(['question_id'], ['test_questions.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_test_answers_id'), 'user_test_answers', ['id'], unique=False)
    op.create_index(op.f('ix_user_test_answers_attempt_id'), 'user_test_answers', ['attempt_id'], unique=False)
    op.create_index(op.f('ix_user_test_answers_question_id'), 'user_test_answers', ['question_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_user_test_answers_question_id'), table_name='user_test_answers')
    op.drop_index(op.f('ix_user_test_answers_attempt_id'), table_name='user_test_answers')
    op.drop_index(op.f('ix_user_test_answers_id'), table_name='user_test_answers')
    op.drop_table('user_test_answers')
    op.drop_index('uq_user_test_attempts_open', table_name='user_test_attempts')
    op.drop_index(op.f('ix_user_test_attempts_event_id'), table_name='user_test_attempts')
    op.drop_index(op.f('ix_user_test_attempts_test_id'), table_name='user_test_attempts')
    op.drop_index(op.f('ix_user_test_attempts_user_id'), table_name='user_test_attempts')
    op.drop_index(op.f('ix_user_test_attempts_id'), table_name='user_test_attempts')
    op.drop_table('user_test_attempts')
    op.drop_index(op.f('ix_test_sequence_answers_question_id'), table_name='test_sequence_answers')
    op.drop_index(op.f('ix_test_sequence_answers_id'), table_name='test_sequence_answers')
    op.drop_table('test_sequence_answers')
    op.drop_index(op.f('ix_test_answers_question_id'), table_name='test_answers')
    op.drop_index(op.f('ix_test_answers_id'), table_name='test_answers')
    op.drop_table('test_answers')
    op.drop_index(op.f('ix_test_questions_test_id'), table_name='test_questions')
    op.drop_index(op.f('ix_test_questions_id'), table_name='test_questions')
    op.drop_table('test_questions')
    op.drop_index(op.f('ix_tests_title'), table_name='tests')
    op.drop_index(op.f('ix_tests_id'), table_name='tests')
    op.drop_table('tests')
    sa.Enum(name='attemptstatusenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='questiontypeenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='testtypeenum').drop(op.get_bind(), checkfirst=True)
