"""initial live quiz schema

Revision ID: 7d1c4a9b2f10
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '7d1c4a9b2f10'
down_revision = None
branch_labels = None
depends_on = None

json_type = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'otp_codes',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_otp_codes_email', 'otp_codes', ['email'])

    op.create_table(
        'auth_tokens',
        sa.Column('token', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_auth_tokens_user_id', 'auth_tokens', ['user_id'])

    op.create_table(
        'quizzes',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('passkey', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('default_time_per_question', sa.Integer(), nullable=False, server_default='45'),
        sa.Column('scoring_type', sa.String(), nullable=False, server_default='speed'),
        sa.Column('speed_scoring_config', json_type, nullable=True),
        sa.Column('created_by', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_quizzes_status', 'quizzes', ['status'])

    op.create_table(
        'questions',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('quiz_id', sa.String(), sa.ForeignKey('quizzes.id'), nullable=False),
        sa.Column('question_number', sa.Integer(), nullable=False),
        sa.Column('text', sa.String(), nullable=False),
        sa.Column('options', json_type, nullable=True),
        sa.Column('correct_option', sa.Integer(), nullable=False),
        sa.Column('is_bonus', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('time_limit', sa.Integer(), nullable=False, server_default='45'),
        sa.Column('points', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('is_revealed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revealed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('quiz_id', 'question_number', name='uq_question_quiz_number'),
    )
    op.create_index('ix_questions_quiz_id', 'questions', ['quiz_id'])

    op.create_table(
        'participant_sessions',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('quiz_id', sa.String(), sa.ForeignKey('quizzes.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('total_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('quiz_id', 'user_id', name='uq_participant_quiz_user'),
    )
    op.create_index('ix_participant_sessions_quiz_id', 'participant_sessions', ['quiz_id'])
    op.create_index('ix_participant_sessions_user_id', 'participant_sessions', ['user_id'])

    op.create_table(
        'answers',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('session_id', sa.String(), sa.ForeignKey('participant_sessions.id'), nullable=False),
        sa.Column('question_id', sa.String(), sa.ForeignKey('questions.id'), nullable=False),
        sa.Column('quiz_id', sa.String(), sa.ForeignKey('quizzes.id'), nullable=False),
        sa.Column('selected_option', sa.Integer(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answer_order', sa.Integer(), nullable=True),
        sa.Column('time_to_answer', sa.Float(), nullable=False, server_default='0'),
        sa.Column('client_elapsed', sa.Float(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('session_id', 'question_id', name='uq_answer_session_question'),
    )
    op.create_index('ix_answers_session_id', 'answers', ['session_id'])
    op.create_index('ix_answers_question_id', 'answers', ['question_id'])
    op.create_index('ix_answers_quiz_id', 'answers', ['quiz_id'])


def downgrade() -> None:
    op.drop_table('answers')
    op.drop_table('participant_sessions')
    op.drop_table('questions')
    op.drop_table('quizzes')
    op.drop_table('auth_tokens')
    op.drop_table('otp_codes')
    op.drop_table('users')
