"""
API tests for achievements and social shares
"""
from fastapi.testclient import TestClient

from main import app
from services.achievements import ACHIEVEMENT_DEFINITIONS

client = TestClient(app)


def _by_type(achievements):
    return {a["type"]: a for a in achievements}


class TestAchievementsApi:

    def test_initialize_is_idempotent(self, auth_headers):
        first = client.post("/api/achievements/initialize", headers=auth_headers)
        second = client.post("/api/achievements/initialize", headers=auth_headers)

        assert first.status_code == 200
        assert len(first.json()) == len(ACHIEVEMENT_DEFINITIONS)
        assert [a["id"] for a in second.json()] == [a["id"] for a in first.json()]
        assert first.json()[0]["type"] == "activity_first"

    def test_list_before_initialize_is_empty(self, auth_headers):
        assert client.get("/api/achievements", headers=auth_headers).json() == []

    def test_check_unlocks_first_activity_once(self, auth_headers):
        client.post("/api/activities", json={"type": "walking", "duration": 25, "feeling": "😊"}, headers=auth_headers)

        unlocked = client.post("/api/achievements/check", headers=auth_headers).json()["unlocked"]
        types = {a["type"] for a in unlocked}
        assert "activity_first" in types
        assert all(a["isUnlocked"] and a["unlockedAt"] for a in unlocked)

        again = client.post("/api/achievements/check", headers=auth_headers).json()["unlocked"]
        assert "activity_first" not in {a["type"] for a in again}

        listed = _by_type(client.get("/api/achievements", headers=auth_headers).json())
        assert listed["activity_minutes"]["currentProgress"] == 25
        assert listed["activity_minutes"]["isUnlocked"] is False

    def test_progress_is_clamped_at_milestone(self, auth_headers):
        client.post("/api/activities", json={"type": "steps", "steps": 15000, "feeling": "😊"}, headers=auth_headers)
        client.post("/api/achievements/check", headers=auth_headers)

        steps = _by_type(client.get("/api/achievements", headers=auth_headers).json())["steps_milestone"]
        assert steps["currentProgress"] == 10000
        assert steps["isUnlocked"] is True

    def test_share_text(self, auth_headers):
        achievement = client.post("/api/achievements/initialize", headers=auth_headers).json()[0]

        response = client.post(f"/api/achievements/{achievement['id']}/share-text", headers=auth_headers)

        assert response.status_code == 200
        text = response.json()["shareText"]
        assert "Alex" in text
        assert achievement["title"] in text

    def test_share_text_for_someone_elses_achievement(self, auth_headers, other_user_headers):
        achievement = client.post("/api/achievements/initialize", headers=auth_headers).json()[0]

        response = client.post(f"/api/achievements/{achievement['id']}/share-text", headers=other_user_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Achievement not found"


class TestSocialSharesApi:

    def test_record_and_list_share(self, auth_headers):
        achievement = client.post("/api/achievements/initialize", headers=auth_headers).json()[0]

        created = client.post(
            "/api/social-shares",
            json={"achievementId": achievement["id"], "platform": "twitter", "shareText": "I did it!"},
            headers=auth_headers,
        )

        assert created.status_code == 201
        assert created.json()["platform"] == "twitter"
        listed = client.get("/api/social-shares", headers=auth_headers).json()
        assert [s["id"] for s in listed] == [created.json()["id"]]

    def test_share_requires_owned_achievement(self, auth_headers, other_user_headers):
        achievement = client.post("/api/achievements/initialize", headers=auth_headers).json()[0]

        response = client.post(
            "/api/social-shares",
            json={"achievementId": achievement["id"], "platform": "facebook", "shareText": "Yay"},
            headers=other_user_headers,
        )

        assert response.status_code == 404
