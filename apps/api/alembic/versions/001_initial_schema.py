"""initial schema

Revision ID: 001
Revises: 
Create Date: 2026-01-05 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _id():
    return sa.Column('id', sa.Uuid(), primary_key=True)


def _owner():
    return sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)


def _index_owner(table: str) -> None:
    op.create_index(f'ix_{table}_user_id', table, ['user_id'])
    op.create_index(f'ix_{table}_created_at', table, ['created_at'])


def upgrade() -> None:
    op.create_table(
        'users',
        _id(),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('phone_number', sa.Text(), nullable=True, unique=True),
        sa.Column('phone_number_hash', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('email_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('google_id', sa.Text(), nullable=True, unique=True),
        sa.Column('auth_provider', sa.Text(), server_default='phone', nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('profile_image', sa.Text(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_phone_number_hash', 'users', ['phone_number_hash'])

    op.create_table(
        'otp_codes',
        _id(),
        sa.Column('phone_number_hash', sa.Text(), nullable=False),
        sa.Column('otp_code', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_used', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
    )
    op.create_index('ix_otp_codes_phone_number_hash', 'otp_codes', ['phone_number_hash'])
    op.create_index('ix_otp_codes_created_at', 'otp_codes', ['created_at'])

    op.create_table(
        'email_verification_codes',
        _id(),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('verification_code', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_used', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
    )
    op.create_index('ix_email_verification_codes_email', 'email_verification_codes', ['email'])
    op.create_index('ix_email_verification_codes_created_at', 'email_verification_codes', ['created_at'])

    op.create_table(
        'activities',
        _id(),
        _owner(),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('steps', sa.Integer(), nullable=True),
        sa.Column('feeling', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('device_metadata', JSON_TYPE, nullable=True),
        _created_at(),
    )
    _index_owner('activities')

    op.create_table(
        'nutrition_logs',
        _id(),
        _owner(),
        sa.Column('meal_type', sa.Text(), nullable=False),
        sa.Column('protein', sa.Integer(), server_default='0', nullable=False),
        sa.Column('complex_carbs', sa.Integer(), server_default='0', nullable=False),
        sa.Column('healthy_fats', sa.Integer(), server_default='0', nullable=False),
        sa.Column('omega3', sa.Integer(), server_default='0', nullable=False),
        sa.Column('magnesium', sa.Integer(), server_default='0', nullable=False),
        sa.Column('b_vitamins', sa.Integer(), server_default='0', nullable=False),
        sa.Column('caffeine', sa.Integer(), server_default='0', nullable=False),
        sa.Column('sugar', sa.Integer(), server_default='0', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
    )
    _index_owner('nutrition_logs')

    op.create_table(
        'social_exposures',
        _id(),
        _owner(),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('expected_energy', sa.Integer(), nullable=False),
        sa.Column('actual_energy', sa.Integer(), nullable=True),
        sa.Column('feelings', sa.Text(), nullable=True),
        sa.Column('went_well', sa.Text(), nullable=True),
        sa.Column('try_differently', sa.Text(), nullable=True),
        sa.Column('completed', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
        sa.CheckConstraint('completed IN (0, 1)', name='ck_social_exposures_completed'),
    )
    _index_owner('social_exposures')

    op.create_table(
        'thought_journals',
        _id(),
        _owner(),
        sa.Column('situation', sa.Text(), nullable=False),
        sa.Column('negative_thought', sa.Text(), nullable=False),
        sa.Column('emotion', sa.Text(), nullable=False),
        sa.Column('emotion_intensity', sa.Integer(), nullable=False),
        sa.Column('evidence_for', sa.Text(), nullable=True),
        sa.Column('evidence_against', sa.Text(), nullable=True),
        sa.Column('reframed_thought', sa.Text(), nullable=True),
        _created_at(),
    )
    _index_owner('thought_journals')

    op.create_table(
        'empathy_checkins',
        _id(),
        _owner(),
        sa.Column('mood', sa.Text(), nullable=False),
        sa.Column('showed_compassion', sa.Integer(), nullable=False),
        sa.Column('proud_of', sa.Text(), nullable=True),
        sa.Column('reflection', sa.Text(), nullable=True),
        _created_at(),
    )
    _index_owner('empathy_checkins')

    op.create_table(
        'mood_checkins',
        _id(),
        _owner(),
        sa.Column('mood_emoji', sa.Text(), nullable=False),
        _created_at(),
    )
    _index_owner('mood_checkins')

    op.create_table(
        'cbt_exercise_sessions',
        _id(),
        _owner(),
        sa.Column('exercise_type', sa.Text(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('effectiveness', sa.Integer(), nullable=False),
        sa.Column('mood', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
    )
    _index_owner('cbt_exercise_sessions')

    op.create_table(
        'achievements',
        _id(),
        _owner(),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.Text(), nullable=False),
        sa.Column('icon', sa.Text(), nullable=False),
        sa.Column('milestone', sa.Integer(), nullable=False),
        sa.Column('current_progress', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_unlocked', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('unlocked_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint('user_id', 'type', name='uq_achievements_user_type'),
    )
    _index_owner('achievements')

    op.create_table(
        'social_shares',
        _id(),
        _owner(),
        sa.Column('achievement_id', sa.Uuid(), sa.ForeignKey('achievements.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform', sa.Text(), nullable=False),
        sa.Column('share_text', sa.Text(), nullable=False),
        sa.Column('share_url', sa.Text(), nullable=True),
        _created_at(),
    )
    _index_owner('social_shares')
    op.create_index('ix_social_shares_achievement_id', 'social_shares', ['achievement_id'])

    op.create_table(
        'counsellors',
        _id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('degree', sa.Text(), nullable=False),
        sa.Column('experience', sa.Integer(), nullable=False),
        sa.Column('specializations', JSON_TYPE, nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('hourly_rate', sa.Integer(), nullable=False),
        sa.Column('session_duration', sa.Integer(), server_default='50', nullable=False),
        sa.Column('profile_image', sa.Text(), nullable=True),
        sa.Column('is_available', sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at(),
    )
    op.create_index('ix_counsellors_created_at', 'counsellors', ['created_at'])

    op.create_table(
        'counselling_bookings',
        _id(),
        _owner(),
        sa.Column('counsellor_id', sa.Uuid(), sa.ForeignKey('counsellors.id'), nullable=False),
        sa.Column('appointment_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        _created_at(),
    )
    _index_owner('counselling_bookings')
    op.create_index('ix_counselling_bookings_counsellor_id', 'counselling_bookings', ['counsellor_id'])

    op.create_table(
        'wearable_devices',
        _id(),
        _owner(),
        sa.Column('device_type', sa.Text(), nullable=False),
        sa.Column('device_name', sa.Text(), nullable=False),
        sa.Column('is_connected', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint('user_id', 'device_type', name='uq_wearable_devices_user_type'),
    )
    _index_owner('wearable_devices')

    op.create_table(
        'sleep_data',
        _id(),
        _owner(),
        sa.Column('device_type', sa.Text(), nullable=False),
        sa.Column('bed_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('wake_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_sleep_minutes', sa.Integer(), nullable=False),
        sa.Column('deep_sleep_minutes', sa.Integer(), nullable=True),
        sa.Column('light_sleep_minutes', sa.Integer(), nullable=True),
        sa.Column('rem_sleep_minutes', sa.Integer(), nullable=True),
        sa.Column('restfulness', sa.Integer(), nullable=True),
        _created_at(),
    )
    _index_owner('sleep_data')
    op.create_index('ix_sleep_data_user_bed_time', 'sleep_data', ['user_id', 'bed_time'])

    op.create_table(
        'heart_rate_data',
        _id(),
        _owner(),
        sa.Column('device_type', sa.Text(), nullable=False),
        sa.Column('heart_rate', sa.Integer(), nullable=False),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        _created_at(),
    )
    _index_owner('heart_rate_data')
    op.create_index('ix_heart_rate_data_user_recorded_at', 'heart_rate_data', ['user_id', 'recorded_at'])


def downgrade() -> None:
    for table in (
        'heart_rate_data',
        'sleep_data',
        'wearable_devices',
        'counselling_bookings',
        'counsellors',
        'social_shares',
        'achievements',
        'cbt_exercise_sessions',
        'mood_checkins',
        'empathy_checkins',
        'thought_journals',
        'social_exposures',
        'nutrition_logs',
        'activities',
        'email_verification_codes',
        'otp_codes',
        'users',
    ):
        op.drop_table(table)
