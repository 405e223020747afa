"""
Counsellor directory and booking helpers.

The directory is read-mostly, so it is cached in Redis and seeded with a
default roster the first time an empty table is read.
"""
import logging
from typing import Dict, List
from uuid import UUID

from sqlalchemy.orm import Session

from core.cache import cache_key, get_cache, set_cache
from core.config import settings
from core.exceptions import NotFoundError
from models import CounsellingBooking, Counsellor
from schemas import CounsellorResponse

logger = logging.getLogger(__name__)

COUNSELLOR_CACHE_KEY = cache_key("counsellors", "directory")

DEFAULT_COUNSELLORS = [
    {
        "name": "Dr. Sarah Mitchell",
        "degree": "PhD Clinical Psychology",
        "experience": 12,
        "specializations": ["Anxiety", "Social Anxiety", "CBT"],
        "bio": "Helps clients build practical coping skills for anxiety using cognitive behavioural therapy.",
        "hourly_rate": 120,
    },
    {
        "name": "James Okafor",
        "degree": "MSc Counselling Psychology",
        "experience": 8,
        "specializations": ["Stress Management", "Mindfulness", "Work-Life Balance"],
        "bio": "Combines mindfulness and solution-focused work for people under sustained stress.",
        "hourly_rate": 90,
    },
    {
        "name": "Dr. Priya Raman",
        "degree": "PsyD",
        "experience": 15,
        "specializations": ["Depression", "Self-Compassion", "Trauma"],
        "bio": "Works with low mood and self-criticism, with a focus on compassion-focused therapy.",
        "hourly_rate": 140,
    },
    {
        "name": "Elena Novak",
        "degree": "MA Marriage and Family Therapy",
        "experience": 6,
        "specializations": ["Relationships", "Social Confidence", "Communication"],
        "bio": "Supports clients practising social situations and strengthening relationships.",
        "hourly_rate": 80,
    },
]


def seed_counsellors(db: Session) -> int:
    """Insert the default roster when the table is empty. Returns rows added."""
    if db.query(Counsellor).first() is not None:
        return 0
    for entry in DEFAULT_COUNSELLORS:
        db.add(Counsellor(**entry))
    db.flush()
    logger.info(f"Seeded {len(DEFAULT_COUNSELLORS)} counsellors")
    return len(DEFAULT_COUNSELLORS)


def list_counsellors(db: Session) -> List[Dict]:
    cached = get_cache(COUNSELLOR_CACHE_KEY)
    if cached is not None:
        return cached

    seed_counsellors(db)
    rows = db.query(Counsellor).order_by(Counsellor.name.asc()).all()
    directory = [CounsellorResponse.model_validate(row).model_dump(mode="json") for row in rows]
    set_cache(COUNSELLOR_CACHE_KEY, directory, ttl=settings.CACHE_TTL_COUNSELLORS)
    return directory


def create_booking(db: Session, user_id: UUID, counsellor_id: UUID, appointment_date, notes=None) -> CounsellingBooking:
    if db.get(Counsellor, counsellor_id) is None:
        raise NotFoundError("Counsellor")

    booking = CounsellingBooking(
        user_id=user_id,
        counsellor_id=counsellor_id,
        appointment_date=appointment_date,
        notes=notes,
        status="pending",
    )
    db.add(booking)
    db.flush()
    logger.info("Counselling booking requested", extra={"extra_fields": {"booking_id": str(booking.id)}})
    return booking
