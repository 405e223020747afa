"""
Achievements and social sharing.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import Achievement, SocialShare, User
from schemas import (
    AchievementCheckResponse,
    AchievementResponse,
    ShareTextResponse,
    SocialShareCreate,
    SocialShareResponse,
)
from services.achievements import (
    check_and_update_achievements,
    generate_share_text,
    get_user_achievements,
    initialize_user_achievements,
)

router = APIRouter(prefix="/api", tags=["achievements"])

LIST_LIMIT = 50


def _owned_achievement(db: Session, achievement_id: UUID, user_id) -> Achievement:
    achievement = db.query(Achievement).filter(
        Achievement.id == achievement_id,
        Achievement.user_id == user_id,
    ).first()
    if not achievement:
        raise HTTPException(status_code=404, detail="Achievement not found")
    return achievement


@router.get("/achievements", response_model=List[AchievementResponse])
def list_achievements(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_user_achievements(db, current_user.id)


@router.post("/achievements/initialize", response_model=List[AchievementResponse])
def initialize_achievements(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Create any missing achievement rows. Safe to call repeatedly."""
    return initialize_user_achievements(db, current_user.id)


@router.post("/achievements/check", response_model=AchievementCheckResponse)
def check_achievements(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    initialize_user_achievements(db, current_user.id)
    return {"unlocked": check_and_update_achievements(db, current_user.id)}


@router.post("/achievements/{achievement_id}/share-text", response_model=ShareTextResponse)
def achievement_share_text(
    achievement_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    achievement = _owned_achievement(db, achievement_id, current_user.id)
    return {"share_text": generate_share_text(achievement, current_user.name)}


@router.get("/social-shares", response_model=List[SocialShareResponse])
def list_social_shares(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(SocialShare)
        .filter(SocialShare.user_id == current_user.id)
        .order_by(SocialShare.created_at.desc())
        .limit(LIST_LIMIT)
        .all()
    )


@router.post("/social-shares", response_model=SocialShareResponse, status_code=status.HTTP_201_CREATED)
def create_social_share(
    share: SocialShareCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _owned_achievement(db, share.achievement_id, current_user.id)
    row = SocialShare(user_id=current_user.id, **share.model_dump())
    db.add(row)
    db.flush()
    return row
