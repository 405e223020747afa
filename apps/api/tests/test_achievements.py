"""
Tests for achievement progress, streaks and unlocking
"""
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from models import Achievement, Activity, NutritionLog, SocialExposure, ThoughtJournal
from services.achievements import (
    ACHIEVEMENT_DEFINITIONS,
    SHARE_TEMPLATES,
    UserLogs,
    calculate_streak,
    check_and_update_achievements,
    compute_progress,
    generate_share_text,
    initialize_user_achievements,
)

TODAY = date(2026, 3, 10)


def at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


def empty_logs(**series) -> UserLogs:
    fields = {"activities": [], "nutrition_logs": [], "social_exposures": [], "thought_journals": []}
    fields.update(series)
    return UserLogs(**fields)


class TestCalculateStreak:

    def test_no_entry_today_means_no_streak(self):
        stamps = [at(TODAY - timedelta(days=1)), at(TODAY - timedelta(days=2))]
        assert calculate_streak(stamps, TODAY) == 0

    def test_counts_consecutive_days_back_from_today(self):
        stamps = [at(TODAY - timedelta(days=i)) for i in range(4)]
        assert calculate_streak(stamps, TODAY) == 4

    def test_gap_stops_the_streak(self):
        stamps = [at(TODAY), at(TODAY - timedelta(days=1)), at(TODAY - timedelta(days=3))]
        assert calculate_streak(stamps, TODAY) == 2

    def test_multiple_entries_on_one_day_count_once(self):
        stamps = [at(TODAY, 8), at(TODAY, 20), at(TODAY - timedelta(days=1))]
        assert calculate_streak(stamps, TODAY) == 2

    def test_naive_timestamps_are_treated_as_utc(self):
        stamps = [datetime(2026, 3, 10, 23, 30), datetime(2026, 3, 9, 0, 5)]
        assert calculate_streak(stamps, TODAY) == 2

    def test_empty(self):
        assert calculate_streak([], TODAY) == 0


class TestComputeProgress:

    def test_steps_milestone_uses_best_single_day(self):
        logs = empty_logs(activities=[
            SimpleNamespace(steps=4000, duration=None, created_at=at(TODAY)),
            SimpleNamespace(steps=12000, duration=None, created_at=at(TODAY)),
        ])
        assert compute_progress("steps_milestone", logs, TODAY) == 12000

    def test_activity_minutes_sums_durations(self):
        logs = empty_logs(activities=[
            SimpleNamespace(steps=None, duration=30, created_at=at(TODAY)),
            SimpleNamespace(steps=5000, duration=None, created_at=at(TODAY)),
            SimpleNamespace(steps=None, duration=45, created_at=at(TODAY)),
        ])
        assert compute_progress("activity_minutes", logs, TODAY) == 75

    def test_social_courage_counts_completed_only(self):
        logs = empty_logs(social_exposures=[
            SimpleNamespace(completed=1, actual_energy=None, expected_energy=5, created_at=at(TODAY)),
            SimpleNamespace(completed=0, actual_energy=None, expected_energy=5, created_at=at(TODAY)),
            SimpleNamespace(completed=1, actual_energy=None, expected_energy=5, created_at=at(TODAY)),
        ])
        assert compute_progress("social_courage", logs, TODAY) == 2

    def test_energy_high_prefers_actual_energy(self):
        logs = empty_logs(social_exposures=[
            SimpleNamespace(completed=1, actual_energy=9, expected_energy=3, created_at=at(TODAY)),
            SimpleNamespace(completed=0, actual_energy=None, expected_energy=6, created_at=at(TODAY)),
        ])
        assert compute_progress("energy_high", logs, TODAY) == 9

    def test_balanced_meal_needs_protein_carbs_and_fats(self):
        logs = empty_logs(nutrition_logs=[
            SimpleNamespace(protein=2, complex_carbs=2, healthy_fats=2, created_at=at(TODAY)),
            SimpleNamespace(protein=3, complex_carbs=1, healthy_fats=3, created_at=at(TODAY)),
        ])
        assert compute_progress("balanced_meal", logs, TODAY) == 1

    def test_reframe_expert_requires_a_real_reframe(self):
        logs = empty_logs(thought_journals=[
            SimpleNamespace(reframed_thought="It went better than I feared", created_at=at(TODAY)),
            SimpleNamespace(reframed_thought="ok", created_at=at(TODAY)),
            SimpleNamespace(reframed_thought=None, created_at=at(TODAY)),
        ])
        assert compute_progress("reframe_expert", logs, TODAY) == 1

    def test_wellness_warrior_counts_categories_logged_today(self):
        logs = empty_logs(
            activities=[SimpleNamespace(created_at=at(TODAY))],
            nutrition_logs=[SimpleNamespace(created_at=at(TODAY))],
            thought_journals=[SimpleNamespace(created_at=at(TODAY - timedelta(days=1)))],
        )
        assert compute_progress("wellness_warrior", logs, TODAY) == 2

    def test_consistency_king_counts_distinct_days_across_categories(self):
        logs = empty_logs(
            activities=[SimpleNamespace(created_at=at(TODAY)), SimpleNamespace(created_at=at(TODAY, 18))],
            nutrition_logs=[SimpleNamespace(created_at=at(TODAY - timedelta(days=1)))],
            social_exposures=[SimpleNamespace(created_at=at(TODAY - timedelta(days=5)))],
        )
        assert compute_progress("consistency_king", logs, TODAY) == 3

    def test_unknown_type_is_zero(self):
        assert compute_progress("does_not_exist", empty_logs(), TODAY) == 0


class TestInitializeUserAchievements:

    def test_creates_every_definition_once(self, db_session, test_user):
        first = initialize_user_achievements(db_session, test_user.id)
        second = initialize_user_achievements(db_session, test_user.id)

        assert len(first) == len(ACHIEVEMENT_DEFINITIONS)
        assert [a.id for a in first] == [a.id for a in second]
        assert [a.type for a in first] == [d.type for d in ACHIEVEMENT_DEFINITIONS]
        assert all(a.current_progress == 0 and not a.is_unlocked for a in first)

    def test_keeps_existing_progress(self, db_session, test_user):
        initialize_user_achievements(db_session, test_user.id)
        row = db_session.query(Achievement).filter(Achievement.type == "activity_minutes").one()
        row.current_progress = 120
        db_session.flush()

        initialize_user_achievements(db_session, test_user.id)

        assert db_session.query(Achievement).filter(Achievement.type == "activity_minutes").one().current_progress == 120


class TestCheckAndUpdateAchievements:

    def _today(self) -> date:
        return datetime.now(timezone.utc).date()

    def test_unlocks_first_activity_and_clamps_progress(self, db_session, test_user):
        initialize_user_achievements(db_session, test_user.id)
        now = datetime.now(timezone.utc)
        db_session.add(Activity(user_id=test_user.id, type="walking", duration=400, feeling="😊", created_at=now))
        db_session.flush()

        unlocked = check_and_update_achievements(db_session, test_user.id, today=self._today())
        unlocked_types = {a.type for a in unlocked}

        assert "activity_first" in unlocked_types
        assert "activity_minutes" in unlocked_types
        minutes = db_session.query(Achievement).filter(Achievement.type == "activity_minutes").one()
        assert minutes.current_progress == minutes.milestone == 300
        assert minutes.unlocked_at is not None

    def test_partial_progress_stays_locked(self, db_session, test_user):
        initialize_user_achievements(db_session, test_user.id)
        db_session.add(NutritionLog(user_id=test_user.id, meal_type="lunch", created_at=datetime.now(timezone.utc)))
        db_session.flush()

        check_and_update_achievements(db_session, test_user.id, today=self._today())

        week = db_session.query(Achievement).filter(Achievement.type == "nutrition_week").one()
        assert week.current_progress == 1
        assert week.is_unlocked is False

    def test_unlock_happens_once(self, db_session, test_user):
        initialize_user_achievements(db_session, test_user.id)
        db_session.add(ThoughtJournal(
            user_id=test_user.id,
            situation="Meeting",
            negative_thought="They will judge me",
            emotion="anxious",
            emotion_intensity=6,
            created_at=datetime.now(timezone.utc),
        ))
        db_session.flush()

        first = check_and_update_achievements(db_session, test_user.id, today=self._today())
        unlocked_at = db_session.query(Achievement).filter(Achievement.type == "thoughts_first").one().unlocked_at
        second = check_and_update_achievements(db_session, test_user.id, today=self._today())

        assert "thoughts_first" in {a.type for a in first}
        assert second == []
        assert db_session.query(Achievement).filter(Achievement.type == "thoughts_first").one().unlocked_at == unlocked_at

    def test_only_counts_the_users_own_logs(self, db_session, test_user, create_user):
        other = create_user(email="other@example.com")
        initialize_user_achievements(db_session, test_user.id)
        db_session.add(SocialExposure(user_id=other.id, title="Party", expected_energy=5, completed=1))
        db_session.flush()

        unlocked = check_and_update_achievements(db_session, test_user.id, today=self._today())

        assert "social_first" not in {a.type for a in unlocked}


class TestShareText:

    @pytest.mark.parametrize("category", list(SHARE_TEMPLATES))
    def test_uses_name_and_title(self, category):
        achievement = SimpleNamespace(category=category, title="Week Warrior")
        text = generate_share_text(achievement, "Alex")
        assert "Alex" in text
        assert '"Week Warrior"' in text

    def test_unknown_category_falls_back_to_overall(self):
        achievement = SimpleNamespace(category="mystery", title="Odd One")
        text = generate_share_text(achievement, None)
        expected = {t.format(name="Someone", title="Odd One") for t in SHARE_TEMPLATES["overall"]}
        assert text in expected
