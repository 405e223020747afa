"""
Thought Journal API Endpoints

CBT thought records plus their analysis:
- per-entry distortion analysis with an AI insight
- a detailed pattern/progress report over recent entries
- a journey insight summary
- a plain-text transcript download

Static paths are declared before /{journal_id}.
"""
import logging
from dataclasses import asdict
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import ThoughtJournal, User
from schemas import (
    DetailedAnalysisResponse,
    InsightsResponse,
    ThoughtAnalysisResponse,
    ThoughtJournalCreate,
    ThoughtJournalResponse,
)
from services.cognitive_analysis import RECENT_WINDOW, analyze_cbt_entry, get_detailed_analysis, get_insight_summary
from services.gemini_service import GeminiService, get_gemini_service
from services.journal_export import MAX_WEEKS, MIN_WEEKS, export_filename, load_recent_journals, render_transcript

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/thought-journals", tags=["thought_journals"])

LIST_LIMIT = 50


def _newest_first(db: Session, user_id, limit: int) -> List[ThoughtJournal]:
    return (
        db.query(ThoughtJournal)
        .filter(ThoughtJournal.user_id == user_id)
        .order_by(ThoughtJournal.created_at.desc())
        .limit(limit)
        .all()
    )


@router.get("", response_model=List[ThoughtJournalResponse])
def list_thought_journals(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _newest_first(db, current_user.id, LIST_LIMIT)


@router.post("", response_model=ThoughtJournalResponse, status_code=status.HTTP_201_CREATED)
def create_thought_journal(
    journal: ThoughtJournalCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = ThoughtJournal(user_id=current_user.id, **journal.model_dump())
    db.add(row)
    db.flush()
    return row


@router.get("/detailed-analysis", response_model=DetailedAnalysisResponse)
def detailed_analysis(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    journals = list(reversed(_newest_first(db, current_user.id, RECENT_WINDOW)))
    return {"analysis": asdict(get_detailed_analysis(journals))}


@router.get("/insights", response_model=InsightsResponse)
def journey_insights(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    entries = _newest_first(db, current_user.id, RECENT_WINDOW)
    return {"insights": get_insight_summary(entries, gemini)}


@router.get("/download/{weeks}", response_class=PlainTextResponse)
def download_transcript(
    weeks: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Text transcript of the last 1-3 weeks of entries, served as an attachment."""
    if not MIN_WEEKS <= weeks <= MAX_WEEKS:
        raise HTTPException(status_code=400, detail=f"Weeks must be between {MIN_WEEKS} and {MAX_WEEKS}")

    journals = load_recent_journals(db, current_user.id, weeks)
    body = render_transcript(journals, weeks, user_name=current_user.name)
    return PlainTextResponse(
        content=body,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(weeks)}"'},
    )


@router.post("/{journal_id}/analyze", response_model=ThoughtAnalysisResponse)
def analyze_thought_journal(
    journal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini: GeminiService = Depends(get_gemini_service),
):
    journal = db.query(ThoughtJournal).filter(
        ThoughtJournal.id == journal_id,
        ThoughtJournal.user_id == current_user.id,
    ).first()
    if not journal:
        raise HTTPException(status_code=404, detail="Thought journal not found")

    analysis = analyze_cbt_entry(
        journal.situation,
        journal.negative_thought,
        journal.emotion,
        journal.emotion_intensity,
    )
    return {"analysis": asdict(analysis), "ai_insight": gemini.analyze_thought_entry(journal)}
