"""
API tests for /api/auth
"""
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

from core.database import SessionLocal
from main import app
from models import EmailVerificationCode, OtpCode, User
from services.oauth_state import PURPOSE_GOOGLE_LOGIN, PURPOSE_WEARABLE, create_oauth_state
from services.phone_auth import AuthResult

client = TestClient(app)

PHONE = "+15551234567"


def latest(model):
    db = SessionLocal()
    try:
        return db.query(model).order_by(model.created_at.desc()).first()
    finally:
        db.close()


class TestPhoneLogin:

    def test_send_and_verify(self):
        sent = client.post("/api/auth/send-otp", json={"phoneNumber": PHONE})
        assert sent.status_code == 200
        assert sent.json() == {"message": "OTP sent successfully"}

        code = latest(OtpCode).otp_code
        response = client.post("/api/auth/verify-otp", json={"phoneNumber": PHONE, "otpCode": code})

        assert response.status_code == 200
        body = response.json()
        assert body["token"]
        assert body["user"]["phoneNumber"] == PHONE
        assert body["user"]["authProvider"] == "phone"
        assert body["user"]["isVerified"] is True

        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == body["user"]["id"]

    def test_snake_case_body_is_accepted(self):
        response = client.post("/api/auth/send-otp", json={"phone_number": PHONE})
        assert response.status_code == 200

    def test_invalid_phone_number(self):
        response = client.post("/api/auth/send-otp", json={"phoneNumber": "12"})
        assert response.status_code == 400
        assert "errors" in response.json()

    def test_wrong_code(self):
        client.post("/api/auth/send-otp", json={"phoneNumber": PHONE})
        code = latest(OtpCode).otp_code
        wrong = "000000" if code != "000000" else "111111"

        response = client.post("/api/auth/verify-otp", json={"phoneNumber": PHONE, "otpCode": wrong})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid OTP code"
        assert latest(OtpCode).attempts == 1

    def test_no_code_sent(self):
        response = client.post("/api/auth/verify-otp", json={"phoneNumber": PHONE, "otpCode": "123456"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired OTP"


class TestEmailLogin:

    CREDENTIALS = {"email": "jamie@example.com", "password": "correct-horse"}

    def test_register_verify_login(self):
        registered = client.post("/api/auth/register", json={**self.CREDENTIALS, "name": "Jamie"})
        assert registered.status_code == 201
        assert registered.json()["user"]["emailVerified"] is False
        assert "verificationCode" not in registered.json()

        blocked = client.post("/api/auth/login", json=self.CREDENTIALS)
        assert blocked.status_code == 403

        code = latest(EmailVerificationCode).verification_code
        verified = client.post(
            "/api/auth/verify-email",
            json={"email": "jamie@example.com", "verificationCode": code},
        )
        assert verified.status_code == 200
        assert verified.json()["message"] == "Email verified successfully! You can now log in."

        logged_in = client.post("/api/auth/login", json=self.CREDENTIALS)
        assert logged_in.status_code == 200
        assert logged_in.json()["user"]["email"] == "jamie@example.com"

    def test_duplicate_registration(self):
        client.post("/api/auth/register", json={**self.CREDENTIALS, "name": "Jamie"})
        response = client.post("/api/auth/register", json={**self.CREDENTIALS, "name": "Jamie"})

        assert response.status_code == 409

    def test_short_password(self):
        response = client.post("/api/auth/register", json={"email": "a@example.com", "password": "short", "name": "A"})
        assert response.status_code == 400

    def test_password_over_bcrypt_limit(self):
        response = client.post(
            "/api/auth/register",
            json={"email": "a@example.com", "password": "p" * 100, "name": "A"},
        )

        assert response.status_code == 400
        assert "at most 72 bytes" in response.json()["detail"]

    def test_password_limit_counts_bytes(self):
        at_limit = client.post(
            "/api/auth/register",
            json={"email": "a@example.com", "password": "p" * 72, "name": "A"},
        )
        multibyte = client.post(
            "/api/auth/register",
            json={"email": "b@example.com", "password": "\u00e9" * 37, "name": "B"},
        )

        assert at_limit.status_code == 201
        assert multibyte.status_code == 400

    def test_login_with_overlong_password(self, test_user):
        response = client.post("/api/auth/login", json={"email": test_user.email, "password": "p" * 100})
        assert response.status_code == 400

    def test_resend_verification(self):
        client.post("/api/auth/register", json={**self.CREDENTIALS, "name": "Jamie"})
        response = client.post("/api/auth/resend-verification", json={"email": "jamie@example.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "A new verification code has been sent to your email."


class TestGoogleLogin:

    def test_login_redirects_to_google(self):
        response = client.get("/api/auth/google", follow_redirects=False)

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert parse_qs(urlparse(location).query)["client_id"] == ["google-client"]

    def test_missing_code(self):
        response = client.get("/api/auth/google/callback", follow_redirects=False)
        assert response.headers["location"] == "http://web.test/login?error=missing_parameters"

    def test_state_for_another_flow_is_rejected(self):
        state = create_oauth_state(PURPOSE_WEARABLE)
        response = client.get(f"/api/auth/google/callback?code=abc&state={state}", follow_redirects=False)
        assert response.headers["location"] == "http://web.test/login?error=invalid_state"

    def test_successful_callback_redirects_with_token(self, monkeypatch):
        def fake_complete(db, code):
            user = User(email="riley@example.com", google_id="g-1", auth_provider="google", is_verified=True)
            db.add(user)
            db.flush()
            return AuthResult(token="signed-jwt", user=user)

        monkeypatch.setattr("routers.auth.complete_google_login", fake_complete)
        state = create_oauth_state(PURPOSE_GOOGLE_LOGIN)

        response = client.get(f"/api/auth/google/callback?code=abc&state={state}", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "http://web.test/auth/callback?token=signed-jwt"
        assert latest(User).google_id == "g-1"

    def test_provider_failure(self, monkeypatch):
        from services.google_auth import GoogleAuthError

        def failing(db, code):
            raise GoogleAuthError("No email found in Google profile")

        monkeypatch.setattr("routers.auth.complete_google_login", failing)
        state = create_oauth_state(PURPOSE_GOOGLE_LOGIN)

        response = client.get(f"/api/auth/google/callback?code=abc&state={state}", follow_redirects=False)

        assert response.headers["location"] == "http://web.test/login?error=google_auth_failed"


class TestCurrentUser:

    def test_requires_token(self):
        assert client.get("/api/auth/user").status_code == 401

    def test_garbage_token(self):
        response = client.get("/api/auth/user", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_returns_camel_case_user(self, auth_headers, test_user):
        body = client.get("/api/auth/user", headers=auth_headers).json()

        assert body["id"] == str(test_user.id)
        assert body["email"] == "alex@example.com"
        assert body["authProvider"] == "email"
        assert "passwordHash" not in body
