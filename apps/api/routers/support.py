"""
Support text endpoints: mood support, CBT exercise coaching and the AI
counsellor chat.

Rule-based text is always returned; the AI fields fall back to canned text
when Gemini is not configured or fails.
"""
import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import CbtExerciseSession, MoodCheckin, ThoughtJournal, User
from schemas import (
    CbtFeedbackRequest,
    CbtFeedbackResponse,
    CbtGuidanceRequest,
    CbtGuidanceResponse,
    CounsellorChatRequest,
    CounsellorChatResponse,
    MoodSupportRequest,
    MoodSupportResponse,
)
from services.cbt_guidance import UserState, get_personalized_guidance, get_post_exercise_feedback
from services.gemini_service import GeminiService, get_gemini_service
from services.mood_support import (
    NEGATIVE_MOODS,
    POSITIVE_MOODS,
    RECENT_MOOD_WINDOW,
    get_mood_support_with_context,
    mood_label,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["support"])

EXERCISE_HISTORY_WINDOW = timedelta(days=7)
RECENT_JOURNALS = 5


def _mood_intensity(mood_emoji: str) -> int:
    if mood_emoji in NEGATIVE_MOODS:
        return 7
    if mood_emoji in POSITIVE_MOODS:
        return 3
    return 5


@router.post("/mood-support", response_model=MoodSupportResponse)
def mood_support(
    request: MoodSupportRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    """Record the mood check-in and return support shaped by the recent mood pattern."""
    previous = (
        db.query(MoodCheckin)
        .filter(MoodCheckin.user_id == current_user.id)
        .order_by(MoodCheckin.created_at.desc())
        .limit(RECENT_MOOD_WINDOW)
        .all()
    )
    recent_moods = [c.mood_emoji for c in reversed(previous)]

    db.add(MoodCheckin(user_id=current_user.id, mood_emoji=request.mood_emoji))
    db.flush()

    support = get_mood_support_with_context(request.mood_emoji, recent_moods, user_name=current_user.name)
    context = f"Recent moods: {' '.join(recent_moods)}" if recent_moods else None
    ai_support = gemini.generate_mood_support(
        mood_label(request.mood_emoji) or request.mood_emoji,
        _mood_intensity(request.mood_emoji),
        user_context=context,
    )
    return {"support": asdict(support), "ai_support": ai_support}


def _user_state(db: Session, user: User, current_mood: str, anxiety_level: int) -> UserState:
    since = datetime.now(timezone.utc) - EXERCISE_HISTORY_WINDOW
    history = (
        db.query(CbtExerciseSession)
        .filter(CbtExerciseSession.user_id == user.id, CbtExerciseSession.created_at >= since)
        .order_by(CbtExerciseSession.created_at.desc())
        .all()
    )
    journals = (
        db.query(ThoughtJournal)
        .filter(ThoughtJournal.user_id == user.id)
        .order_by(ThoughtJournal.created_at.desc())
        .limit(RECENT_JOURNALS)
        .all()
    )
    return UserState(
        current_mood=current_mood,
        anxiety_level=anxiety_level,
        exercise_history=history,
        recent_thought_journals=journals,
    )


@router.post("/cbt-exercises/guidance", response_model=CbtGuidanceResponse)
def cbt_guidance(
    request: CbtGuidanceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    state = _user_state(db, current_user, request.current_mood, request.anxiety_level)
    guidance = get_personalized_guidance(request.exercise_type, state)
    context = (
        f"Mood: {request.current_mood}, anxiety {request.anxiety_level}/10, "
        f"{len(state.exercise_history)} exercises this week"
    )
    ai_guidance = gemini.generate_cbt_guidance(request.exercise_type, "pre", user_context=context)
    return {"guidance": asdict(guidance), "ai_guidance": ai_guidance}


@router.post("/cbt-exercises/feedback", response_model=CbtFeedbackResponse)
def cbt_feedback(
    request: CbtFeedbackRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    """Record the completed session and return feedback on it."""
    db.add(CbtExerciseSession(
        user_id=current_user.id,
        exercise_type=request.exercise_type,
        duration_minutes=request.duration_minutes,
        effectiveness=request.effectiveness,
        mood=request.mood,
        notes=request.notes,
    ))
    db.flush()

    feedback = get_post_exercise_feedback(request.exercise_type, request.duration_minutes, request.effectiveness)
    context = f"Practised for {request.duration_minutes} minutes, rated {request.effectiveness}/10"
    if request.mood:
        context += f", feeling {request.mood} afterwards"
    ai_feedback = gemini.generate_cbt_guidance(request.exercise_type, "post", user_context=context)
    return {"feedback": asdict(feedback), "ai_feedback": ai_feedback}


@router.post("/ai-counsellor/chat", response_model=CounsellorChatResponse)
def counsellor_chat(
    request: CounsellorChatRequest,
    current_user: User = Depends(get_current_user),
    gemini: GeminiService = Depends(get_gemini_service),
):
    response = gemini.generate_counsellor_response(
        request.message,
        journal_entry=request.journal_entry,
        conversation_history=request.conversation_history,
    )
    return {"response": response}
