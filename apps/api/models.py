from sqlalchemy import (
    Column,
    Integer,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Text,
    Index,
    UniqueConstraint,
    Uuid,
    JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from core.database import Base
import uuid
from datetime import datetime, timezone

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _created_at():
    # Python-side default keeps sub-second ordering; server default covers raw inserts.
    return Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)


def _owner():
    return Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    # Phone (OTP) identity
    phone_number = Column(Text, unique=True, nullable=True)
    phone_number_hash = Column(Text, nullable=True, index=True)

    # Email/password identity
    email = Column(Text, unique=True, nullable=True)
    password_hash = Column(Text, nullable=True)
    email_verified = Column(Boolean, default=False, nullable=False)

    # Google identity
    google_id = Column(Text, unique=True, nullable=True)

    auth_provider = Column(Text, default="phone", nullable=False)  # 'phone' | 'email' | 'google'
    name = Column(Text, nullable=True)
    profile_image = Column(Text, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    phone_number_hash = Column(Text, nullable=False, index=True)
    otp_code = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    created_at = _created_at()


class EmailVerificationCode(Base):
    __tablename__ = "email_verification_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, index=True)
    verification_code = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    created_at = _created_at()


class Activity(Base):
    """
    Logged physical activity.

    Time-based activities carry `duration` (minutes); step tracking carries
    `steps`. Exactly one of the two is set for manual entries.
    """
    __tablename__ = "activities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    type = Column(Text, nullable=False)  # walking, yoga, swimming, tai chi, meditation, steps, other, daily_summary
    duration = Column(Integer, nullable=True)
    steps = Column(Integer, nullable=True)
    feeling = Column(Text, nullable=False)  # emoji
    notes = Column(Text, nullable=True)
    # Wearable provenance: device_type, heart_rate, calories_burned, distance
    device_metadata = Column(JSONType, nullable=True)
    created_at = _created_at()


class NutritionLog(Base):
    __tablename__ = "nutrition_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    meal_type = Column(Text, nullable=False)  # breakfast, lunch, dinner, snack
    # 0-3 scale
    protein = Column(Integer, default=0, nullable=False)
    complex_carbs = Column(Integer, default=0, nullable=False)
    healthy_fats = Column(Integer, default=0, nullable=False)
    omega3 = Column(Integer, default=0, nullable=False)
    magnesium = Column(Integer, default=0, nullable=False)
    b_vitamins = Column(Integer, default=0, nullable=False)
    caffeine = Column(Integer, default=0, nullable=False)  # mg
    sugar = Column(Integer, default=0, nullable=False)  # grams
    notes = Column(Text, nullable=True)
    created_at = _created_at()


class SocialExposure(Base):
    __tablename__ = "social_exposures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    title = Column(Text, nullable=False)
    expected_energy = Column(Integer, nullable=False)  # 1-10
    actual_energy = Column(Integer, nullable=True)  # 1-10, filled after
    feelings = Column(Text, nullable=True)  # comma-separated
    went_well = Column(Text, nullable=True)
    try_differently = Column(Text, nullable=True)
    completed = Column(Integer, default=0, nullable=False)  # 0 or 1
    created_at = _created_at()

    __table_args__ = (
        CheckConstraint("completed IN (0, 1)", name="ck_social_exposures_completed"),
    )


class ThoughtJournal(Base):
    __tablename__ = "thought_journals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    situation = Column(Text, nullable=False)
    negative_thought = Column(Text, nullable=False)
    emotion = Column(Text, nullable=False)
    emotion_intensity = Column(Integer, nullable=False)  # 1-10
    evidence_for = Column(Text, nullable=True)
    evidence_against = Column(Text, nullable=True)
    reframed_thought = Column(Text, nullable=True)
    created_at = _created_at()


class EmpathyCheckin(Base):
    __tablename__ = "empathy_checkins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    mood = Column(Text, nullable=False)  # happy, neutral, sad, anxious
    showed_compassion = Column(Integer, nullable=False)  # 1-5
    proud_of = Column(Text, nullable=True)
    reflection = Column(Text, nullable=True)
    created_at = _created_at()


class MoodCheckin(Base):
    """Emoji mood taps; history feeds contextual mood support."""
    __tablename__ = "mood_checkins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    mood_emoji = Column(Text, nullable=False)
    created_at = _created_at()


class CbtExerciseSession(Base):
    """Completed CBT exercise with self-rated effectiveness (1-10)."""
    __tablename__ = "cbt_exercise_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    exercise_type = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    effectiveness = Column(Integer, nullable=False)
    mood = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = _created_at()


class Achievement(Base):
    """
    Per-user achievement row, mutated in place as progress increments.

    `current_progress` never exceeds `milestone`; `unlocked_at` is set once.
    """
    __tablename__ = "achievements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False)  # activity | social | nutrition | mental_health | overall
    icon = Column(Text, nullable=False)
    milestone = Column(Integer, nullable=False)
    current_progress = Column(Integer, default=0, nullable=False)
    is_unlocked = Column(Boolean, default=False, nullable=False)
    unlocked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = _created_at()

    __table_args__ = (
        UniqueConstraint("user_id", "type", name="uq_achievements_user_type"),
    )


class SocialShare(Base):
    __tablename__ = "social_shares"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    achievement_id = Column(Uuid, ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(Text, nullable=False)
    share_text = Column(Text, nullable=False)
    share_url = Column(Text, nullable=True)
    created_at = _created_at()


class Counsellor(Base):
    __tablename__ = "counsellors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    degree = Column(Text, nullable=False)
    experience = Column(Integer, nullable=False)  # years
    specializations = Column(JSONType, nullable=False, default=list)
    bio = Column(Text, nullable=True)
    hourly_rate = Column(Integer, nullable=False)
    session_duration = Column(Integer, default=50, nullable=False)  # minutes
    profile_image = Column(Text, nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = _created_at()


class CounsellingBooking(Base):
    __tablename__ = "counselling_bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    counsellor_id = Column(Uuid, ForeignKey("counsellors.id"), nullable=False, index=True)
    appointment_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(Text, default="pending", nullable=False)  # pending | confirmed | cancelled | completed
    created_at = _created_at()


class WearableDevice(Base):
    """Connected wearable provider account. Tokens are Fernet-encrypted at rest."""
    __tablename__ = "wearable_devices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    device_type = Column(Text, nullable=False)  # fitbit | google_fit | apple_health | garmin | samsung_health
    device_name = Column(Text, nullable=False)
    is_connected = Column(Boolean, default=False, nullable=False)
    access_token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    created_at = _created_at()

    __table_args__ = (
        UniqueConstraint("user_id", "device_type", name="uq_wearable_devices_user_type"),
    )


class SleepData(Base):
    __tablename__ = "sleep_data"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    device_type = Column(Text, nullable=False)
    bed_time = Column(DateTime(timezone=True), nullable=False)
    wake_time = Column(DateTime(timezone=True), nullable=False)
    total_sleep_minutes = Column(Integer, nullable=False)
    deep_sleep_minutes = Column(Integer, nullable=True)
    light_sleep_minutes = Column(Integer, nullable=True)
    rem_sleep_minutes = Column(Integer, nullable=True)
    restfulness = Column(Integer, nullable=True)  # 1-10
    created_at = _created_at()

    __table_args__ = (
        Index("ix_sleep_data_user_bed_time", "user_id", "bed_time"),
    )


class HeartRateData(Base):
    __tablename__ = "heart_rate_data"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = _owner()
    device_type = Column(Text, nullable=False)
    heart_rate = Column(Integer, nullable=False)
    context = Column(Text, nullable=True)  # resting | active | exercise
    recorded_at = Column(DateTime(timezone=True), nullable=False)
    created_at = _created_at()

    __table_args__ = (
        Index("ix_heart_rate_data_user_recorded_at", "user_id", "recorded_at"),
    )
