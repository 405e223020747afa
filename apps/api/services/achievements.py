"""
Achievement Progress Service

Milestone tracking over the user's activity, nutrition, social-exposure and
thought-journal logs. Each of the fixed definitions maps to one progress
metric computed from those time series; progress is clamped at the milestone
and an achievement unlocks exactly once.

Day boundaries are UTC calendar days. A streak only counts if it includes
today.
"""

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from models import Achievement, Activity, NutritionLog, SocialExposure, ThoughtJournal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementDefinition:
    type: str
    title: str
    description: str
    category: str
    icon: str
    milestone: int


ACHIEVEMENT_DEFINITIONS: List[AchievementDefinition] = [
    # Activity
    AchievementDefinition("activity_first", "First Step", "Completed your first activity", "activity", "🏃", 1),
    AchievementDefinition("activity_week_streak", "Week Warrior", "Completed activities for 7 days straight", "activity", "🔥", 7),
    AchievementDefinition("steps_milestone", "Step Counter", "Walked 10,000 steps in a day", "activity", "👟", 10000),
    AchievementDefinition("activity_minutes", "Time Master", "Accumulated 300 minutes of activity", "activity", "⏰", 300),
    # Social
    AchievementDefinition("social_first", "Social Butterfly", "Completed your first social exposure", "social", "🦋", 1),
    AchievementDefinition("social_courage", "Courage Builder", "Completed 10 social exposures", "social", "💪", 10),
    AchievementDefinition("energy_high", "Energy Boost", "Achieved 8+ energy level in social exposure", "social", "⚡", 8),
    # Nutrition
    AchievementDefinition("nutrition_first", "Mindful Eater", "Logged your first nutrition entry", "nutrition", "🥗", 1),
    AchievementDefinition("nutrition_week", "Nutrition Navigator", "Logged nutrition for 7 days", "nutrition", "📊", 7),
    AchievementDefinition("balanced_meal", "Balanced Bowl", "Created a perfectly balanced meal", "nutrition", "⚖️", 1),
    # Mental health
    AchievementDefinition("thoughts_first", "Thought Detective", "Completed your first thought journal", "mental_health", "🕵️", 1),
    AchievementDefinition("thoughts_week", "Mind Master", "Thought journaling for 7 days", "mental_health", "🧠", 7),
    AchievementDefinition("reframe_expert", "Reframe Expert", "Successfully reframed 20 negative thoughts", "mental_health", "🔄", 20),
    # Overall
    AchievementDefinition("wellness_warrior", "Wellness Warrior", "Tracked all 4 categories in one day", "overall", "🌟", 4),
    AchievementDefinition("consistency_king", "Consistency King", "Used the app for 30 days", "overall", "👑", 30),
]

DEFINITIONS_BY_TYPE: Dict[str, AchievementDefinition] = {d.type: d for d in ACHIEVEMENT_DEFINITIONS}

SHARE_TEMPLATES: Dict[str, List[str]] = {
    "activity": [
        '{name} just unlocked "{title}" in CalmTrack! 🏃 Making progress one step at a time #MentalWellness #Progress',
        'Another milestone reached! {name} earned "{title}" 🎯 #AnxietySupport #WellnessJourney',
        '{name} is crushing their wellness goals! Just unlocked "{title}" 💪 #HealthyMind #Progress',
    ],
    "social": [
        '{name} is stepping out of their comfort zone! 🦋 Just earned "{title}" #SocialCourage #AnxietySupport',
        'Building confidence one step at a time! {name} unlocked "{title}" 🌟 #MentalHealth #Growth',
        '{name} is proving that courage grows with practice! "{title}" achieved 💪 #SocialAnxiety #Progress',
    ],
    "nutrition": [
        '{name} is nourishing their mind and body! 🥗 Just earned "{title}" #MindfulEating #Wellness',
        'Fueling wellness from within! {name} unlocked "{title}" 📊 #NutritionGoals #MentalHealth',
        '{name} knows that good nutrition supports mental wellness! "{title}" achieved 🎯',
    ],
    "mental_health": [
        '{name} is rewiring their thoughts for the better! 🧠 Just earned "{title}" #CBT #MentalHealth',
        'Thought patterns don\'t define us! {name} unlocked "{title}" 🔄 #Mindfulness #Growth',
        '{name} is becoming their own thought detective! "{title}" achieved 🕵️ #AnxietyManagement',
    ],
    "overall": [
        '{name} is committed to their wellness journey! 🌟 Just earned "{title}" #WellnessWarrior #Progress',
        'Consistency is key! {name} unlocked "{title}" 👑 #MentalWellness #Dedication',
        '{name} is proving that small daily actions create big changes! "{title}" achieved 🎯',
    ],
}


@dataclass
class UserLogs:
    """Snapshot of the four tracked series for one user."""
    activities: List[Activity]
    nutrition_logs: List[NutritionLog]
    social_exposures: List[SocialExposure]
    thought_journals: List[ThoughtJournal]


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _day(dt: datetime) -> date:
    """UTC calendar day of a timestamp. Naive values are treated as UTC."""
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(timezone.utc).date()


def calculate_streak(timestamps: Iterable[datetime], today: Optional[date] = None) -> int:
    """
    Consecutive-day streak ending today.

    Returns 0 when there is no entry today; otherwise counts back one day at
    a time until the first missing day.
    """
    today = today or _utc_today()
    days = {_day(ts) for ts in timestamps}
    if today not in days:
        return 0

    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def load_user_logs(db: Session, user_id: UUID) -> UserLogs:
    return UserLogs(
        activities=db.query(Activity).filter(Activity.user_id == user_id).all(),
        nutrition_logs=db.query(NutritionLog).filter(NutritionLog.user_id == user_id).all(),
        social_exposures=db.query(SocialExposure).filter(SocialExposure.user_id == user_id).all(),
        thought_journals=db.query(ThoughtJournal).filter(ThoughtJournal.user_id == user_id).all(),
    )


def _categories_logged_on(logs: UserLogs, day: date) -> int:
    series = [logs.activities, logs.nutrition_logs, logs.social_exposures, logs.thought_journals]
    return sum(1 for rows in series if any(_day(r.created_at) == day for r in rows))


def _distinct_active_days(logs: UserLogs) -> int:
    days = set()
    for rows in (logs.activities, logs.nutrition_logs, logs.social_exposures, logs.thought_journals):
        days.update(_day(r.created_at) for r in rows)
    return len(days)


def _is_balanced(log: NutritionLog) -> bool:
    return (log.protein or 0) >= 2 and (log.complex_carbs or 0) >= 2 and (log.healthy_fats or 0) >= 2


def _progress_metrics(today: date) -> Dict[str, Callable[[UserLogs], int]]:
    return {
        "activity_first": lambda l: 1 if l.activities else 0,
        "activity_week_streak": lambda l: calculate_streak((a.created_at for a in l.activities), today),
        "steps_milestone": lambda l: max((a.steps or 0 for a in l.activities), default=0),
        "activity_minutes": lambda l: sum(a.duration or 0 for a in l.activities),
        "social_first": lambda l: 1 if l.social_exposures else 0,
        "social_courage": lambda l: sum(1 for s in l.social_exposures if s.completed == 1),
        "energy_high": lambda l: max(
            (s.actual_energy or s.expected_energy or 0 for s in l.social_exposures), default=0
        ),
        "nutrition_first": lambda l: 1 if l.nutrition_logs else 0,
        "nutrition_week": lambda l: calculate_streak((n.created_at for n in l.nutrition_logs), today),
        "balanced_meal": lambda l: sum(1 for n in l.nutrition_logs if _is_balanced(n)),
        "thoughts_first": lambda l: 1 if l.thought_journals else 0,
        "thoughts_week": lambda l: calculate_streak((t.created_at for t in l.thought_journals), today),
        "reframe_expert": lambda l: sum(
            1 for t in l.thought_journals if t.reframed_thought and len(t.reframed_thought) > 10
        ),
        "wellness_warrior": lambda l: _categories_logged_on(l, today),
        "consistency_king": _distinct_active_days,
    }


def compute_progress(achievement_type: str, logs: UserLogs, today: Optional[date] = None) -> int:
    """Raw (unclamped) progress value for one achievement type."""
    metrics = _progress_metrics(today or _utc_today())
    metric = metrics.get(achievement_type)
    if metric is None:
        return 0
    return metric(logs)


def initialize_user_achievements(db: Session, user_id: UUID) -> List[Achievement]:
    """
    Create any achievement rows the user does not have yet.

    Idempotent: existing rows (and their progress) are left alone.
    Returns the full list for the user.
    """
    existing = {
        a.type for a in db.query(Achievement.type).filter(Achievement.user_id == user_id).all()
    }

    created = 0
    for definition in ACHIEVEMENT_DEFINITIONS:
        if definition.type in existing:
            continue
        db.add(Achievement(
            user_id=user_id,
            type=definition.type,
            title=definition.title,
            description=definition.description,
            category=definition.category,
            icon=definition.icon,
            milestone=definition.milestone,
            current_progress=0,
            is_unlocked=False,
        ))
        created += 1

    if created:
        db.flush()
        logger.info(
            f"Initialized {created} achievements for user {user_id}",
            extra={"extra_fields": {"user_id": str(user_id), "created": created}},
        )

    return get_user_achievements(db, user_id)


def get_user_achievements(db: Session, user_id: UUID) -> List[Achievement]:
    rows = db.query(Achievement).filter(Achievement.user_id == user_id).all()
    order = {d.type: i for i, d in enumerate(ACHIEVEMENT_DEFINITIONS)}
    return sorted(rows, key=lambda a: order.get(a.type, len(order)))


def check_and_update_achievements(
    db: Session,
    user_id: UUID,
    today: Optional[date] = None,
) -> List[Achievement]:
    """
    Recompute progress for every locked achievement and unlock those that
    reached their milestone.

    Returns only the achievements unlocked by this call.
    """
    today = today or _utc_today()
    logs = load_user_logs(db, user_id)
    metrics = _progress_metrics(today)
    now = datetime.now(timezone.utc)

    newly_unlocked: List[Achievement] = []
    locked = db.query(Achievement).filter(
        Achievement.user_id == user_id,
        Achievement.is_unlocked.is_(False),
    ).all()

    for achievement in locked:
        metric = metrics.get(achievement.type)
        if metric is None:
            continue

        progress = min(metric(logs), achievement.milestone)
        achievement.current_progress = progress

        if progress >= achievement.milestone:
            achievement.is_unlocked = True
            achievement.unlocked_at = now
            newly_unlocked.append(achievement)

    db.flush()

    if newly_unlocked:
        logger.info(
            f"User {user_id} unlocked {len(newly_unlocked)} achievements",
            extra={"extra_fields": {
                "user_id": str(user_id),
                "types": [a.type for a in newly_unlocked],
            }},
        )

    return newly_unlocked


def generate_share_text(achievement: Achievement, user_name: Optional[str] = None) -> str:
    """Pick one of the category's share templates; unknown categories use 'overall'."""
    templates = SHARE_TEMPLATES.get(achievement.category, SHARE_TEMPLATES["overall"])
    template = random.choice(templates)
    return template.format(name=user_name or "Someone", title=achievement.title)
