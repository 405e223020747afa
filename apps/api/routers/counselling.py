"""
Counsellor directory and session bookings.
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import CounsellingBooking, User
from schemas import (
    CounsellingBookingCreate,
    CounsellingBookingResponse,
    CounsellingBookingUpdate,
    CounsellorResponse,
)
from services.counselling import create_booking, list_counsellors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["counselling"])

LIST_LIMIT = 50


@router.get("/counsellors", response_model=List[CounsellorResponse])
def get_counsellors(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return list_counsellors(db)


@router.get("/counselling-bookings", response_model=List[CounsellingBookingResponse])
def list_bookings(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(CounsellingBooking)
        .filter(CounsellingBooking.user_id == current_user.id)
        .order_by(CounsellingBooking.created_at.desc())
        .limit(LIST_LIMIT)
        .all()
    )


@router.post("/counselling-bookings", response_model=CounsellingBookingResponse, status_code=status.HTTP_201_CREATED)
def book_session(
    booking: CounsellingBookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Request a session. Bookings start as pending until the counsellor confirms."""
    return create_booking(
        db,
        current_user.id,
        booking.counsellor_id,
        booking.appointment_date,
        notes=booking.notes,
    )


@router.patch("/counselling-bookings/{booking_id}", response_model=CounsellingBookingResponse)
def update_booking(
    booking_id: UUID,
    update: CounsellingBookingUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = db.query(CounsellingBooking).filter(
        CounsellingBooking.id == booking_id,
        CounsellingBooking.user_id == current_user.id,
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    booking.status = update.status
    db.flush()
    logger.info(f"Booking {booking.id} status set to {update.status}")
    return booking
