"""
API tests for the counsellor directory and bookings
"""
from fastapi.testclient import TestClient

from main import app
from services.counselling import DEFAULT_COUNSELLORS

client = TestClient(app)


def _first_counsellor(headers):
    return client.get("/api/counsellors", headers=headers).json()[0]


class TestCounsellors:

    def test_directory_is_seeded_and_sorted(self, auth_headers):
        response = client.get("/api/counsellors", headers=auth_headers)

        assert response.status_code == 200
        names = [c["name"] for c in response.json()]
        assert len(names) == len(DEFAULT_COUNSELLORS)
        assert names == sorted(names)
        assert response.json()[0]["hourlyRate"] > 0
        assert response.json()[0]["sessionDuration"] == 50

    def test_seeding_happens_once(self, auth_headers):
        client.get("/api/counsellors", headers=auth_headers)
        assert len(client.get("/api/counsellors", headers=auth_headers).json()) == len(DEFAULT_COUNSELLORS)

    def test_requires_auth(self):
        assert client.get("/api/counsellors").status_code == 401


class TestBookings:

    def _book(self, headers, counsellor_id, **overrides):
        payload = {"counsellorId": counsellor_id, "appointmentDate": "2026-04-02T15:00:00Z", "notes": "First session"}
        payload.update(overrides)
        return client.post("/api/counselling-bookings", json=payload, headers=headers)

    def test_book_starts_pending(self, auth_headers):
        counsellor = _first_counsellor(auth_headers)

        response = self._book(auth_headers, counsellor["id"])

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["counsellorId"] == counsellor["id"]
        assert [b["id"] for b in client.get("/api/counselling-bookings", headers=auth_headers).json()] == [body["id"]]

    def test_unknown_counsellor(self, auth_headers):
        response = self._book(auth_headers, "00000000-0000-0000-0000-000000000001")

        assert response.status_code == 404
        assert response.json()["detail"] == "Counsellor not found"

    def test_update_status(self, auth_headers):
        booking = self._book(auth_headers, _first_counsellor(auth_headers)["id"]).json()

        response = client.patch(
            f"/api/counselling-bookings/{booking['id']}",
            json={"status": "cancelled"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_invalid_status(self, auth_headers):
        booking = self._book(auth_headers, _first_counsellor(auth_headers)["id"]).json()

        response = client.patch(
            f"/api/counselling-bookings/{booking['id']}",
            json={"status": "rescheduled"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_other_users_booking(self, auth_headers, other_user_headers):
        booking = self._book(auth_headers, _first_counsellor(auth_headers)["id"]).json()

        response = client.patch(
            f"/api/counselling-bookings/{booking['id']}",
            json={"status": "confirmed"},
            headers=other_user_headers,
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Booking not found"
