"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-08-04 09:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'user_status': ('active', 'suspended'),
    'admin_role': ('hr_admin', 'dev_admin', 'plant_manager'),
    'enrollment_status': ('enrolled', 'in_progress', 'completed'),
    'event_type': ('view_section', 'start_course', 'complete_course'),
    'language_code': ('en', 'es', 'fr', 'de'),
    'block_type': ('hero', 'text', 'card', 'image', 'table', 'list', 'grid',
                   'callout', 'quote', 'divider', 'video', 'audio'),
    'question_type': ('true-false', 'multiple-choice'),
    'content_type': ('section', 'content_block', 'quiz_question'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)
        )
    return columns


def _fk(column: str, target: str, cascade: bool = True, nullable: bool = False) -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete='CASCADE' if cascade else None),
        nullable=nullable,
    )


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'plants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'courses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('version', sa.String(20), nullable=False, server_default='1.0'),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('default_language', _enum('language_code'), nullable=False, server_default='en'),
        sa.Column('available_languages', sa.JSON(), nullable=False, server_default=sa.text("'[\"en\"]'")),
        sa.Column('content_version', sa.String(20), nullable=False, server_default='1.0'),
        *_timestamps(),
    )

    op.create_table(
        'course_languages',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('course_id', 'courses.id'),
        sa.Column('language_code', _enum('language_code'), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint('course_id', 'language_code', name='uq_course_languages_course_language'),
    )

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('plant_id', 'plants.id', cascade=False),
        sa.Column('first_name', sa.String(50), nullable=False),
        sa.Column('last_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('job_title', sa.String(100), nullable=True),
        sa.Column('status', _enum('user_status'), nullable=False, server_default='active'),
        *_timestamps(),
    )
    op.create_index('ix_profiles_plant_id', 'profiles', ['plant_id'])
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'admin_roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('user_id', 'profiles.id'),
        sa.Column('role', _enum('admin_role'), nullable=False),
        _fk('plant_id', 'plants.id', cascade=False, nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint('user_id', 'role', 'plant_id', name='uq_admin_roles_user_role_plant'),
    )
    op.create_index('ix_admin_roles_user_id', 'admin_roles', ['user_id'])

    op.create_table(
        'enrollments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('user_id', 'profiles.id'),
        _fk('course_id', 'courses.id'),
        _fk('plant_id', 'plants.id', cascade=False),
        sa.Column('status', _enum('enrollment_status'), nullable=False, server_default='enrolled'),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_enrollments_user_course'),
    )

    op.create_table(
        'progress',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('user_id', 'profiles.id'),
        _fk('course_id', 'courses.id'),
        _fk('plant_id', 'plants.id', cascade=False),
        sa.Column('progress_percent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_section', sa.String(100), nullable=True),
        sa.Column('sections_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_sections', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_active_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_progress_user_course'),
        sa.CheckConstraint('progress_percent >= 0 AND progress_percent <= 100', name='ck_progress_percent_range'),
    )

    op.create_table(
        'activity_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('user_id', 'profiles.id'),
        _fk('course_id', 'courses.id'),
        _fk('plant_id', 'plants.id', cascade=False),
        sa.Column('event_type', _enum('event_type'), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        'question_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('user_id', 'profiles.id'),
        _fk('course_id', 'courses.id'),
        _fk('plant_id', 'plants.id', cascade=False),
        sa.Column('section_key', sa.String(100), nullable=False),
        sa.Column('question_key', sa.String(100), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('attempt_index', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('response_meta', sa.JSON(), nullable=True),
        sa.Column('answered_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        *_timestamps(updated=False),
        sa.CheckConstraint('attempt_index >= 1', name='ck_question_events_attempt_index'),
    )

    op.create_table(
        'course_sections',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('course_id', 'courses.id'),
        sa.Column('section_key', sa.String(100), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('icon_name', sa.String(50), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint('course_id', 'section_key', name='uq_course_sections_course_key'),
    )

    op.create_table(
        'content_blocks',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('section_id', 'course_sections.id'),
        sa.Column('block_type', _enum('block_type'), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'quiz_questions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('section_id', 'course_sections.id'),
        sa.Column('question_key', sa.String(100), nullable=False),
        sa.Column('question_type', _enum('question_type'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=True),
        sa.Column('correct_answer', sa.JSON(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'content_translations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('content_type', _enum('content_type'), nullable=False),
        sa.Column('content_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('language_code', _enum('language_code'), nullable=False),
        sa.Column('translated_content', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('content_type', 'content_id', 'language_code', name='uq_content_translations_target'),
    )

    op.create_table(
        'section_progress',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _fk('user_id', 'profiles.id'),
        _fk('section_id', 'course_sections.id'),
        _fk('plant_id', 'plants.id', cascade=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_viewed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'section_id', name='uq_section_progress_user_section'),
    )

    # plant-scoped tables are filtered by plant on nearly every query
    for table in ('enrollments', 'progress', 'activity_events', 'question_events', 'section_progress'):
        op.create_index(f'ix_{table}_plant_id', table, ['plant_id'])
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])
    for table in ('enrollments', 'progress', 'activity_events', 'question_events', 'course_sections'):
        op.create_index(f'ix_{table}_course_id', table, ['course_id'])
    op.create_index('ix_section_progress_section_id', 'section_progress', ['section_id'])
    op.create_index('ix_content_blocks_section_id', 'content_blocks', ['section_id'])
    op.create_index('ix_quiz_questions_section_id', 'quiz_questions', ['section_id'])
    op.create_index('ix_content_translations_content_id', 'content_translations', ['content_id'])


def downgrade() -> None:
    for table in (
        'section_progress', 'content_translations', 'quiz_questions', 'content_blocks',
        'course_sections', 'question_events', 'activity_events', 'progress', 'enrollments',
        'admin_roles', 'profiles', 'course_languages', 'courses', 'plants',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUMS:
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
