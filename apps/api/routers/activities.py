"""
Activity, nutrition and empathy check-in logs.

Create-then-immutable entries owned by the current user; lists are newest
first and capped.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import Activity, EmpathyCheckin, NutritionLog, User
from schemas import (
    ActivityCreate,
    ActivityResponse,
    EmpathyCheckinCreate,
    EmpathyCheckinResponse,
    NutritionLogCreate,
    NutritionLogResponse,
)

router = APIRouter(prefix="/api", tags=["tracking"])

LIST_LIMIT = 50


def _recent(db: Session, model, user_id):
    return (
        db.query(model)
        .filter(model.user_id == user_id)
        .order_by(model.created_at.desc())
        .limit(LIST_LIMIT)
        .all()
    )


def _create(db: Session, model, user_id, payload):
    row = model(user_id=user_id, **payload.model_dump())
    db.add(row)
    db.flush()
    return row


@router.get("/activities", response_model=List[ActivityResponse])
def list_activities(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _recent(db, Activity, current_user.id)


@router.post("/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity(
    activity: ActivityCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Log an activity. Exactly one of duration or steps is accepted."""
    return _create(db, Activity, current_user.id, activity)


@router.get("/nutrition-logs", response_model=List[NutritionLogResponse])
def list_nutrition_logs(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _recent(db, NutritionLog, current_user.id)


@router.post("/nutrition-logs", response_model=NutritionLogResponse, status_code=status.HTTP_201_CREATED)
def create_nutrition_log(
    log: NutritionLogCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _create(db, NutritionLog, current_user.id, log)


@router.get("/empathy-checkins", response_model=List[EmpathyCheckinResponse])
def list_empathy_checkins(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _recent(db, EmpathyCheckin, current_user.id)


@router.post("/empathy-checkins", response_model=EmpathyCheckinResponse, status_code=status.HTTP_201_CREATED)
def create_empathy_checkin(
    checkin: EmpathyCheckinCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _create(db, EmpathyCheckin, current_user.id, checkin)
