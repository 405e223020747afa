"""
Social exposure log and exposure coaching.

Static paths (/motivation, /feedback, /daily-motivation) are declared before
the /{exposure_id} route.
"""
import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import SocialExposure, User
from schemas import (
    DailyMotivationResponse,
    ExposureFeedbackRequest,
    ExposureFeedbackResponse,
    ExposureMotivationRequest,
    ExposureMotivationResponse,
    SocialExposureCreate,
    SocialExposureResponse,
    SocialExposureUpdate,
)
from services.gemini_service import GeminiService, get_gemini_service
from services.social_exposure_guidance import (
    ExposureContext,
    get_daily_exposure_motivation,
    get_post_exposure_support,
    get_pre_exposure_motivation,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/social-exposures", tags=["social_exposures"])

LIST_LIMIT = 50
RECENT_WINDOW = timedelta(days=7)


def _recent_exposures(db: Session, user_id) -> List[SocialExposure]:
    since = datetime.now(timezone.utc) - RECENT_WINDOW
    return (
        db.query(SocialExposure)
        .filter(SocialExposure.user_id == user_id, SocialExposure.created_at >= since)
        .order_by(SocialExposure.created_at.desc())
        .all()
    )


def _build_context(db: Session, user_id, request: ExposureMotivationRequest) -> ExposureContext:
    recent = _recent_exposures(db, user_id)
    attempts = len(recent)
    completed = sum(1 for e in recent if e.completed)
    return ExposureContext(
        exposure_type=request.exposure_type,
        anxiety_level=request.anxiety_level,
        description=request.description or "",
        is_first_time=request.is_first_time,
        recent_attempts=attempts,
        success_rate=completed / attempts if attempts else 0.0,
    )


@router.get("", response_model=List[SocialExposureResponse])
def list_social_exposures(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(SocialExposure)
        .filter(SocialExposure.user_id == current_user.id)
        .order_by(SocialExposure.created_at.desc())
        .limit(LIST_LIMIT)
        .all()
    )


@router.post("", response_model=SocialExposureResponse, status_code=status.HTTP_201_CREATED)
def create_social_exposure(
    exposure: SocialExposureCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = SocialExposure(user_id=current_user.id, **exposure.model_dump())
    db.add(row)
    db.flush()
    return row


@router.post("/motivation", response_model=ExposureMotivationResponse)
def exposure_motivation(
    request: ExposureMotivationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    """Pre-exposure encouragement tuned to anxiety level and recent attempts."""
    context = _build_context(db, current_user.id, request)
    motivation = get_pre_exposure_motivation(context)
    ai_support = gemini.generate_social_support(request.exposure_type, "pre", anxiety_level=request.anxiety_level)
    return {"motivation": asdict(motivation), "ai_support": ai_support}


@router.post("/feedback", response_model=ExposureFeedbackResponse)
def exposure_feedback(
    request: ExposureFeedbackRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    context = _build_context(db, current_user.id, request)
    feedback = get_post_exposure_support(
        context,
        completed=request.completed,
        before_anxiety=request.before_anxiety,
        after_anxiety=request.after_anxiety,
        notes=request.notes,
    )
    ai_support = gemini.generate_social_support(
        request.exposure_type,
        "post",
        anxiety_level=request.after_anxiety,
        completed=request.completed,
    )
    return {"feedback": asdict(feedback), "ai_support": ai_support}


@router.get("/daily-motivation", response_model=DailyMotivationResponse)
def daily_motivation(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    recent = _recent_exposures(db, current_user.id)
    motivation = get_daily_exposure_motivation(recent, user_name=current_user.name)
    progress = {
        "exposures_this_week": len(recent),
        "completed_this_week": sum(1 for e in recent if e.completed),
    }
    return {"motivation": motivation, "ai_encouragement": gemini.generate_daily_encouragement(progress)}


@router.patch("/{exposure_id}", response_model=SocialExposureResponse)
def update_social_exposure(
    exposure_id: UUID,
    update: SocialExposureUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Fill in the outcome of an exposure. Only sent fields change."""
    row = db.query(SocialExposure).filter(
        SocialExposure.id == exposure_id,
        SocialExposure.user_id == current_user.id,
    ).first()
    if not row:
        raise HTTPException(status_code=404, detail="Social exposure not found")

    for field_name, value in update.model_dump(exclude_unset=True).items():
        setattr(row, field_name, value)
    db.flush()
    return row
