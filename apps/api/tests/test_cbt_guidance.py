"""
Tests for CBT exercise guidance and post-exercise feedback
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from services.cbt_guidance import (
    EXERCISE_TEMPLATES,
    NEXT_STEPS_BY_EXERCISE,
    UserState,
    get_default_guidance,
    get_personalized_guidance,
    get_post_exercise_feedback,
)

NOW = datetime(2026, 3, 10, 12, tzinfo=timezone.utc)


def session(effectiveness, days_ago=1, exercise_type="box-breathing"):
    return SimpleNamespace(
        exercise_type=exercise_type,
        effectiveness=effectiveness,
        created_at=NOW - timedelta(days=days_ago),
    )


class TestPersonalizedGuidance:

    def test_unknown_exercise_gets_default_guidance(self):
        assert get_personalized_guidance("juggling", UserState(), now=NOW) == get_default_guidance()

    def test_template_steps_are_copied(self):
        guidance = get_personalized_guidance("box-breathing", UserState(anxiety_level=5), now=NOW)
        template = EXERCISE_TEMPLATES["box-breathing"]

        assert guidance.pre_exercise == template["pre"]
        assert guidance.during_exercise == template["during"]
        assert guidance.pre_exercise is not template["pre"]

    def test_high_anxiety_adds_difficulty_adjustments(self):
        guidance = get_personalized_guidance("box-breathing", UserState(anxiety_level=9), now=NOW)

        assert guidance.personalized_tips[0] == "Your anxiety is quite high right now. Start with shorter durations."
        assert "Consider reducing the duration by half to start" in guidance.difficulty_adjustments

    def test_low_anxiety_suggests_stretching(self):
        guidance = get_personalized_guidance("thought-challenging", UserState(anxiety_level=2), now=NOW)

        assert guidance.difficulty_adjustments == []
        assert "You might try extending the duration or adding complexity." in guidance.personalized_tips

    def test_overwhelmed_mood_leads_pre_exercise(self):
        guidance = get_personalized_guidance(
            "grounding-5-4-3-2-1", UserState(current_mood="Totally Overwhelmed"), now=NOW
        )
        assert guidance.pre_exercise[0].startswith("You're feeling overwhelmed right now.")

    def test_first_time_recently(self):
        state = UserState(exercise_history=[session(9, days_ago=10)])
        guidance = get_personalized_guidance("box-breathing", state, now=NOW)
        assert "This is your first time trying this exercise recently - be patient with yourself" in guidance.personalized_tips

    def test_effective_history_is_praised(self):
        state = UserState(exercise_history=[session(8), session(7), session(9)])
        guidance = get_personalized_guidance("box-breathing", state, now=NOW)
        assert "You've been finding this exercise quite helpful - great consistency!" in guidance.personalized_tips

    def test_ineffective_history(self):
        state = UserState(exercise_history=[session(2), session(3), session(1)])
        guidance = get_personalized_guidance("box-breathing", state, now=NOW)
        assert "This exercise hasn't been feeling very effective lately - that's okay" in guidance.personalized_tips

    def test_history_of_other_exercises_is_ignored(self):
        state = UserState(exercise_history=[session(9, exercise_type="thought-challenging") for _ in range(3)])
        guidance = get_personalized_guidance("box-breathing", state, now=NOW)
        assert "This is your first time trying this exercise recently - be patient with yourself" in guidance.personalized_tips

    def test_naive_history_timestamps(self):
        naive = SimpleNamespace(exercise_type="box-breathing", effectiveness=5, created_at=datetime(2026, 3, 9, 12))
        guidance = get_personalized_guidance("box-breathing", UserState(exercise_history=[naive]), now=NOW)
        assert "This is your first time trying this exercise recently - be patient with yourself" not in guidance.personalized_tips

    def test_anxious_journals_point_to_breathing(self):
        journals = [SimpleNamespace(emotion="Anxious", emotion_intensity=8) for _ in range(2)]
        guidance = get_personalized_guidance("box-breathing", UserState(recent_thought_journals=journals), now=NOW)

        assert "Your recent journal entries show high emotional intensity - this practice can help" in guidance.personalized_tips
        assert (
            "Breathing exercises are particularly helpful for anxiety patterns you've been experiencing"
            in guidance.personalized_tips
        )


class TestPostExerciseFeedback:

    def test_highly_effective(self):
        feedback = get_post_exercise_feedback("box-breathing", 10, 9)

        assert feedback.encouragement[0] == "Excellent! You found this exercise very helpful."
        assert len(feedback.suggestions) == 3
        assert feedback.next_steps[0] == "Consider logging this experience in your thought journal"
        for step in NEXT_STEPS_BY_EXERCISE["box-breathing"]:
            assert step in feedback.next_steps

    def test_low_effectiveness_gets_alternatives(self):
        feedback = get_post_exercise_feedback("box-breathing", 5, 2)

        assert len(feedback.encouragement) == 3
        assert "Try a different exercise type if this one isn't resonating" in feedback.suggestions
        assert feedback.next_steps == ["Consider logging this experience in your thought journal"]

    def test_middle_effectiveness_has_no_suggestions(self):
        feedback = get_post_exercise_feedback("thought-challenging", 5, 5)
        assert feedback.suggestions == []

    def test_short_and_long_sessions(self):
        short = get_post_exercise_feedback("box-breathing", 2, 5)
        long = get_post_exercise_feedback("box-breathing", 20, 5)

        assert short.next_steps[-1] == "When you're ready, try gradually increasing the duration"
        assert long.next_steps[-1] == "You dedicated significant time to this practice - excellent commitment"
