from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from uuid import UUID
from typing import Optional, List, Dict, Any, Literal


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"

# bcrypt only hashes the first 72 bytes and rejects longer input.
MAX_PASSWORD_BYTES = 72


def _check_password_length(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class SendOtpRequest(CamelModel):
    phone_number: str = Field(min_length=10, max_length=15, pattern=PHONE_PATTERN)


class VerifyOtpRequest(CamelModel):
    phone_number: str = Field(min_length=10, max_length=15, pattern=PHONE_PATTERN)
    otp_code: str = Field(min_length=6, max_length=6)


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v):
        return _check_password_length(v)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v):
        return _check_password_length(v)


class VerifyEmailRequest(CamelModel):
    email: EmailStr
    verification_code: str = Field(min_length=6, max_length=6)


class ResendVerificationRequest(CamelModel):
    email: EmailStr


class UserResponse(CamelModel):
    id: UUID
    phone_number: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    profile_image: Optional[str] = None
    auth_provider: str
    is_verified: bool
    email_verified: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    token: str
    user: UserResponse


class MessageResponse(CamelModel):
    message: str


class RegisterResponse(CamelModel):
    message: str
    user: UserResponse


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------

class ActivityCreate(CamelModel):
    """
    Manual activity entry.

    Timed activities send `duration` (minutes); step tracking sends `steps`.
    Exactly one of the two must be present.
    """
    type: str = Field(min_length=1)
    duration: Optional[int] = Field(default=None, ge=1)
    steps: Optional[int] = Field(default=None, ge=1)
    feeling: str = Field(min_length=1)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _duration_xor_steps(self):
        if (self.duration is None) == (self.steps is None):
            raise ValueError("Provide either duration or steps, not both")
        return self


class ActivityResponse(CamelModel):
    id: UUID
    user_id: UUID
    type: str
    duration: Optional[int] = None
    steps: Optional[int] = None
    feeling: str
    notes: Optional[str] = None
    # "metadata" is taken on ORM models, so only the wire name uses it.
    device_metadata: Optional[Dict[str, Any]] = Field(default=None, serialization_alias="metadata")
    created_at: datetime


class NutritionLogCreate(CamelModel):
    meal_type: str = Field(min_length=1)
    protein: int = Field(default=0, ge=0, le=3)
    complex_carbs: int = Field(default=0, ge=0, le=3)
    healthy_fats: int = Field(default=0, ge=0, le=3)
    omega3: int = Field(default=0, ge=0, le=3)
    magnesium: int = Field(default=0, ge=0, le=3)
    b_vitamins: int = Field(default=0, ge=0, le=3)
    caffeine: int = Field(default=0, ge=0)
    sugar: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class NutritionLogResponse(NutritionLogCreate):
    id: UUID
    user_id: UUID
    created_at: datetime


class SocialExposureCreate(CamelModel):
    title: str = Field(min_length=1)
    expected_energy: int = Field(ge=1, le=10)
    actual_energy: Optional[int] = Field(default=None, ge=1, le=10)
    feelings: Optional[str] = None
    went_well: Optional[str] = None
    try_differently: Optional[str] = None
    completed: int = Field(default=0, ge=0, le=1)


class SocialExposureUpdate(CamelModel):
    """Patch after the exposure; only sent fields are applied."""
    title: Optional[str] = Field(default=None, min_length=1)
    expected_energy: Optional[int] = Field(default=None, ge=1, le=10)
    actual_energy: Optional[int] = Field(default=None, ge=1, le=10)
    feelings: Optional[str] = None
    went_well: Optional[str] = None
    try_differently: Optional[str] = None
    completed: Optional[int] = Field(default=None, ge=0, le=1)

    @field_validator("title", "expected_energy", "completed")
    @classmethod
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class SocialExposureResponse(SocialExposureCreate):
    id: UUID
    user_id: UUID
    created_at: datetime


class ThoughtJournalCreate(CamelModel):
    situation: str = Field(min_length=1)
    negative_thought: str = Field(min_length=1)
    emotion: str = Field(min_length=1)
    emotion_intensity: int = Field(ge=1, le=10)
    evidence_for: Optional[str] = None
    evidence_against: Optional[str] = None
    reframed_thought: Optional[str] = None


class ThoughtJournalResponse(ThoughtJournalCreate):
    id: UUID
    user_id: UUID
    created_at: datetime


class EmpathyCheckinCreate(CamelModel):
    mood: str = Field(min_length=1)
    showed_compassion: int = Field(ge=1, le=5)
    proud_of: Optional[str] = None
    reflection: Optional[str] = None


class EmpathyCheckinResponse(EmpathyCheckinCreate):
    id: UUID
    user_id: UUID
    created_at: datetime


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

class ThoughtAnalysis(CamelModel):
    cognitive_distortions: List[str]
    severity: Literal["low", "moderate", "high"]
    suggestions: List[str]
    reframing_examples: List[str]
    strengths: List[str]


class ThoughtAnalysisResponse(CamelModel):
    analysis: ThoughtAnalysis
    ai_insight: str


class DetailedAnalysis(CamelModel):
    patterns: List[str]
    progress: List[str]
    recommendations: List[str]
    overall_trend: Literal["improving", "stable", "concerning"]


class DetailedAnalysisResponse(CamelModel):
    analysis: DetailedAnalysis


class InsightsResponse(CamelModel):
    insights: str


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------

class AchievementResponse(CamelModel):
    id: UUID
    user_id: UUID
    type: str
    title: str
    description: str
    category: str
    icon: str
    milestone: int
    current_progress: int
    is_unlocked: bool
    unlocked_at: Optional[datetime] = None
    created_at: datetime


class AchievementCheckResponse(CamelModel):
    unlocked: List[AchievementResponse]


class ShareTextResponse(CamelModel):
    share_text: str


class SocialShareCreate(CamelModel):
    achievement_id: UUID
    platform: str = Field(min_length=1)
    share_text: str = Field(min_length=1)
    share_url: Optional[str] = None


class SocialShareResponse(SocialShareCreate):
    id: UUID
    user_id: UUID
    created_at: datetime


# ---------------------------------------------------------------------------
# Counselling
# ---------------------------------------------------------------------------

class CounsellorResponse(CamelModel):
    id: UUID
    name: str
    degree: str
    experience: int
    specializations: List[str]
    bio: Optional[str] = None
    hourly_rate: int
    session_duration: int
    profile_image: Optional[str] = None
    is_available: bool


class CounsellingBookingCreate(CamelModel):
    counsellor_id: UUID
    appointment_date: datetime
    notes: Optional[str] = None


class CounsellingBookingUpdate(CamelModel):
    status: Literal["pending", "confirmed", "cancelled", "completed"]


class CounsellingBookingResponse(CamelModel):
    id: UUID
    user_id: UUID
    counsellor_id: UUID
    appointment_date: datetime
    notes: Optional[str] = None
    status: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Support text
# ---------------------------------------------------------------------------

class MoodSupportRequest(CamelModel):
    mood_emoji: str = Field(min_length=1)


class MoodSupport(CamelModel):
    validation: str
    motivation: str
    quick_tip: Optional[str] = None


class MoodAiSupport(CamelModel):
    validation: str
    encouragement: str


class MoodSupportResponse(CamelModel):
    support: MoodSupport
    ai_support: MoodAiSupport


class CbtGuidanceRequest(CamelModel):
    exercise_type: str = Field(min_length=1)
    current_mood: str = "neutral"
    anxiety_level: int = Field(default=5, ge=1, le=10)


class ExerciseGuidance(CamelModel):
    pre_exercise: List[str]
    during_exercise: List[str]
    post_exercise: List[str]
    personalized_tips: List[str]
    difficulty_adjustments: List[str]


class CbtGuidanceResponse(CamelModel):
    guidance: ExerciseGuidance
    ai_guidance: str


class CbtFeedbackRequest(CamelModel):
    exercise_type: str = Field(min_length=1)
    duration_minutes: int = Field(ge=1)
    effectiveness: int = Field(ge=1, le=10)
    mood: Optional[str] = None
    notes: Optional[str] = None


class ExerciseFeedback(CamelModel):
    encouragement: List[str]
    suggestions: List[str]
    next_steps: List[str]


class CbtFeedbackResponse(CamelModel):
    feedback: ExerciseFeedback
    ai_feedback: str


class ExposureMotivationRequest(CamelModel):
    exposure_type: str = Field(min_length=1)
    anxiety_level: int = Field(ge=1, le=10)
    description: Optional[str] = None
    is_first_time: bool = False


class ExposureFeedbackRequest(ExposureMotivationRequest):
    completed: bool
    before_anxiety: int = Field(ge=1, le=10)
    after_anxiety: int = Field(ge=1, le=10)
    notes: Optional[str] = None


class ExposureMotivation(CamelModel):
    encouragement: str
    confidence_booster: str
    practical_tip: str
    affirmation: str


class ExposureMotivationResponse(CamelModel):
    motivation: ExposureMotivation
    ai_support: str


class ExposureFeedback(CamelModel):
    celebration: str
    reflection: List[str]
    learnings: List[str]
    next_steps: List[str]


class ExposureFeedbackResponse(CamelModel):
    feedback: ExposureFeedback
    ai_support: str


class DailyMotivationResponse(CamelModel):
    motivation: str
    ai_encouragement: str


class ChatJournalEntry(CamelModel):
    situation: Optional[str] = None
    negative_thought: Optional[str] = None
    emotion: Optional[str] = None
    emotion_intensity: Optional[int] = None
    reframing: Optional[str] = None


class ChatTurn(CamelModel):
    role: Literal["user", "counsellor"]
    content: str


class CounsellorChatRequest(CamelModel):
    message: str = Field(min_length=1)
    journal_entry: Optional[ChatJournalEntry] = None
    conversation_history: List[ChatTurn] = Field(default_factory=list)


class CounsellorChatResponse(CamelModel):
    response: str


# ---------------------------------------------------------------------------
# Wearables
# ---------------------------------------------------------------------------

DeviceType = Literal["fitbit", "google_fit", "apple_health", "garmin", "samsung_health"]


class WearableDeviceResponse(CamelModel):
    id: UUID
    user_id: UUID
    device_type: str
    device_name: str
    is_connected: bool
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None
    created_at: datetime


class WearableConnectRequest(CamelModel):
    device_type: DeviceType


class WearableConnectResponse(CamelModel):
    auth_url: str


class WearableSyncResponse(CamelModel):
    message: str
    synced_count: int


class WearableUploadRequest(CamelModel):
    device_type: DeviceType
    data_type: Literal["sleep", "heartrate", "activities"]
    data: List[Dict[str, Any]]


class WearableUploadResponse(CamelModel):
    message: str
    processed_count: int


# Rows inside WearableUploadRequest.data, validated per data_type.

class SleepUploadRow(CamelModel):
    bed_time: datetime
    wake_time: datetime
    total_sleep_minutes: int = Field(ge=0)
    deep_sleep_minutes: Optional[int] = Field(default=None, ge=0)
    light_sleep_minutes: Optional[int] = Field(default=None, ge=0)
    rem_sleep_minutes: Optional[int] = Field(default=None, ge=0)
    restfulness: int = Field(ge=1, le=10)


class HeartRateUploadRow(CamelModel):
    heart_rate: int = Field(ge=1)
    context: Literal["resting", "active", "exercise"]
    recorded_at: datetime


class ActivityUploadRow(CamelModel):
    type: str = Field(min_length=1)
    duration: Optional[int] = Field(default=None, ge=0)
    steps: Optional[int] = Field(default=None, ge=0)
    feeling: Optional[str] = None
    heart_rate: Optional[int] = None
    calories_burned: Optional[float] = None
    distance: Optional[float] = None


class SleepDataResponse(CamelModel):
    id: UUID
    user_id: UUID
    device_type: str
    bed_time: datetime
    wake_time: datetime
    total_sleep_minutes: int
    deep_sleep_minutes: Optional[int] = None
    light_sleep_minutes: Optional[int] = None
    rem_sleep_minutes: Optional[int] = None
    restfulness: Optional[int] = None
    created_at: datetime


class HeartRateDataResponse(CamelModel):
    id: UUID
    user_id: UUID
    device_type: str
    heart_rate: int
    context: Optional[str] = None
    recorded_at: datetime
    created_at: datetime
