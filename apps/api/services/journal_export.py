"""
Thought Journal Export

Plain-text transcript of a user's recent thought journals, downloadable for
sharing with a counsellor.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from models import ThoughtJournal

MIN_WEEKS = 1
MAX_WEEKS = 3
RULE = "=" * 60


def export_filename(weeks: int) -> str:
    return f"thought-journal-{weeks}-weeks.txt"


def load_recent_journals(db: Session, user_id: UUID, weeks: int, now: Optional[datetime] = None) -> List[ThoughtJournal]:
    """Journals from the last `weeks` weeks, oldest first."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(weeks=weeks)
    return (
        db.query(ThoughtJournal)
        .filter(ThoughtJournal.user_id == user_id, ThoughtJournal.created_at >= since)
        .order_by(ThoughtJournal.created_at.asc())
        .all()
    )


def _stamp(value: datetime) -> str:
    return value.strftime("%A, %d %B %Y %H:%M UTC")


def render_transcript(
    journals: Sequence[ThoughtJournal],
    weeks: int,
    user_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    lines = [
        RULE,
        f"CalmTrack Thought Journal: last {weeks} week{'s' if weeks != 1 else ''}",
        f"Prepared for: {user_name or 'CalmTrack user'}",
        f"Generated: {_stamp(now)}",
        f"Entries: {len(journals)}",
        RULE,
        "",
    ]

    if not journals:
        lines.append("No thought journal entries were recorded in this period.")
        return "\n".join(lines) + "\n"

    for number, entry in enumerate(journals, start=1):
        lines.append(f"Entry {number} ({_stamp(entry.created_at)})")
        lines.append("-" * 40)
        lines.append(f"Situation: {entry.situation}")
        lines.append(f"Negative thought: {entry.negative_thought}")
        lines.append(f"Emotion: {entry.emotion} (intensity {entry.emotion_intensity}/10)")
        if entry.evidence_for:
            lines.append(f"Evidence for: {entry.evidence_for}")
        if entry.evidence_against:
            lines.append(f"Evidence against: {entry.evidence_against}")
        if entry.reframed_thought:
            lines.append(f"Reframed thought: {entry.reframed_thought}")
        lines.append("")

    intensities = [entry.emotion_intensity for entry in journals]
    reframed = sum(1 for entry in journals if entry.reframed_thought)
    lines.extend([
        RULE,
        f"Average emotion intensity: {sum(intensities) / len(intensities):.1f}/10",
        f"Entries with a reframed thought: {reframed} of {len(journals)}",
        RULE,
    ])
    return "\n".join(lines) + "\n"
