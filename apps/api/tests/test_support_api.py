"""
API tests for mood support, CBT exercise coaching and the AI counsellor chat
"""
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from core.database import SessionLocal
from main import app
from models import CbtExerciseSession, MoodCheckin
from services.gemini_service import (
    FALLBACK_CBT_POST,
    FALLBACK_CBT_PRE,
    FALLBACK_COUNSELLOR,
    FALLBACK_MOOD_ENCOURAGEMENT,
    FALLBACK_MOOD_VALIDATION,
    get_gemini_service,
)

client = TestClient(app)


def _count(model):
    db = SessionLocal()
    try:
        return db.query(model).count()
    finally:
        db.close()


class TestMoodSupportApi:

    def test_records_checkin_and_returns_support(self, auth_headers):
        response = client.post("/api/mood-support", json={"moodEmoji": "😰"}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["support"]["validation"]
        assert body["support"]["motivation"]
        assert body["aiSupport"] == {
            "validation": FALLBACK_MOOD_VALIDATION,
            "encouragement": FALLBACK_MOOD_ENCOURAGEMENT,
        }
        assert _count(MoodCheckin) == 1

    def test_negative_streak_adds_quick_tip(self, auth_headers):
        for emoji in ("😢", "😠", "😓", "😰"):
            client.post("/api/mood-support", json={"moodEmoji": emoji}, headers=auth_headers)

        body = client.post("/api/mood-support", json={"moodEmoji": "😢"}, headers=auth_headers).json()

        assert body["support"]["quickTip"] == (
            "Consider reaching out to someone you trust or trying a grounding exercise."
        )

    def test_missing_emoji(self, auth_headers):
        assert client.post("/api/mood-support", json={}, headers=auth_headers).status_code == 400


class TestCbtExercisesApi:

    def test_guidance(self, auth_headers):
        response = client.post(
            "/api/cbt-exercises/guidance",
            json={"exerciseType": "box-breathing", "currentMood": "anxious", "anxietyLevel": 8},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert set(body["guidance"]) == {
            "preExercise", "duringExercise", "postExercise", "personalizedTips", "difficultyAdjustments",
        }
        assert body["aiGuidance"] == FALLBACK_CBT_PRE

    def test_feedback_records_session(self, auth_headers):
        response = client.post(
            "/api/cbt-exercises/feedback",
            json={"exerciseType": "box-breathing", "durationMinutes": 5, "effectiveness": 8, "mood": "calm"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["feedback"]["encouragement"]
        assert body["aiFeedback"] == FALLBACK_CBT_POST
        assert _count(CbtExerciseSession) == 1

    def test_effectiveness_range(self, auth_headers):
        response = client.post(
            "/api/cbt-exercises/feedback",
            json={"exerciseType": "box-breathing", "durationMinutes": 5, "effectiveness": 11},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestCounsellorChatApi:

    def test_fallback_reply(self, auth_headers):
        response = client.post("/api/ai-counsellor/chat", json={"message": "I feel overwhelmed"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"response": FALLBACK_COUNSELLOR}

    def test_history_and_journal_reach_the_model(self, auth_headers):
        gemini = MagicMock()
        gemini.generate_counsellor_response.return_value = "Let's slow down together."
        app.dependency_overrides[get_gemini_service] = lambda: gemini

        response = client.post(
            "/api/ai-counsellor/chat",
            json={
                "message": "Still anxious",
                "journalEntry": {"situation": "Exam", "negativeThought": "I'll fail", "emotion": "fear", "emotionIntensity": 9},
                "conversationHistory": [{"role": "user", "content": "Hi"}, {"role": "counsellor", "content": "Hello"}],
            },
            headers=auth_headers,
        )

        assert response.json()["response"] == "Let's slow down together."
        args, kwargs = gemini.generate_counsellor_response.call_args
        assert args == ("Still anxious",)
        assert kwargs["journal_entry"].situation == "Exam"
        assert [turn.role for turn in kwargs["conversation_history"]] == ["user", "counsellor"]

    def test_unknown_role_is_rejected(self, auth_headers):
        response = client.post(
            "/api/ai-counsellor/chat",
            json={"message": "hi", "conversationHistory": [{"role": "system", "content": "x"}]},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_empty_message(self, auth_headers):
        assert client.post("/api/ai-counsellor/chat", json={"message": ""}, headers=auth_headers).status_code == 400
