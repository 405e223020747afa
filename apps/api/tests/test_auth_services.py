"""
Tests for phone OTP, email/password and Google sign-in services
"""
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from core.security import decode_access_token, hash_phone_number, verify_password
from models import EmailVerificationCode, OtpCode, User, utcnow
from services import email_auth, phone_auth
from services.google_auth import GoogleAuthError, complete_google_login, link_or_create_user
from services.sms_service import SmsService, otp_message

PHONE = "+15551234567"


def fake_sms(delivered=True):
    sms = MagicMock(spec=SmsService)
    sms.send_otp.return_value = delivered
    return sms


def fake_mailer(delivered=True):
    mailer = MagicMock()
    mailer.send_verification_email.return_value = delivered
    return mailer


class TestSmsService:

    def test_unconfigured_service_reports_success(self):
        sms = SmsService()
        assert sms.is_configured is False
        assert sms.send_otp(PHONE, "123456") is True

    def test_configured_service_uses_twilio(self, monkeypatch):
        client = MagicMock()
        client.messages.create.return_value.sid = "SM123"
        sms = SmsService(client=client)
        monkeypatch.setattr(sms, "from_number", "+15550000000")

        assert sms.send_otp(PHONE, "654321") is True
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["to"] == PHONE
        assert kwargs["body"] == otp_message("654321")
        assert "654321" in kwargs["body"]


class TestPhoneOtp:

    def test_send_stores_hashed_code(self, db_session):
        sms = fake_sms()
        otp = phone_auth.send_otp(db_session, PHONE, sms=sms)

        assert otp.phone_number_hash == hash_phone_number(PHONE)
        assert otp.phone_number_hash != PHONE
        assert len(otp.otp_code) == 6 and otp.otp_code.isdigit()
        sms.send_otp.assert_called_once_with(PHONE, otp.otp_code)

    def test_undelivered_sms_is_bad_gateway(self, db_session):
        with pytest.raises(HTTPException) as exc:
            phone_auth.send_otp(db_session, PHONE, sms=fake_sms(delivered=False))
        assert exc.value.status_code == 502

    def test_verify_creates_phone_user(self, db_session):
        otp = phone_auth.send_otp(db_session, PHONE, sms=fake_sms())

        result = phone_auth.verify_otp(db_session, PHONE, otp.otp_code)

        assert result.user.phone_number == PHONE
        assert result.user.auth_provider == "phone"
        assert result.user.is_verified is True
        assert otp.is_used is True
        assert decode_access_token(result.token)["sub"] == str(result.user.id)

    def test_second_login_reuses_user(self, db_session):
        first = phone_auth.send_otp(db_session, PHONE, sms=fake_sms())
        user_id = phone_auth.verify_otp(db_session, PHONE, first.otp_code).user.id
        second = phone_auth.send_otp(db_session, PHONE, sms=fake_sms())

        assert phone_auth.verify_otp(db_session, PHONE, second.otp_code).user.id == user_id
        assert db_session.query(User).count() == 1

    def test_used_code_cannot_be_replayed(self, db_session):
        otp = phone_auth.send_otp(db_session, PHONE, sms=fake_sms())
        phone_auth.verify_otp(db_session, PHONE, otp.otp_code)

        with pytest.raises(HTTPException) as exc:
            phone_auth.verify_otp(db_session, PHONE, otp.otp_code)
        assert exc.value.detail == "Invalid or expired OTP"

    def test_expired_code(self, db_session):
        otp = phone_auth.send_otp(db_session, PHONE, sms=fake_sms())
        otp.expires_at = utcnow() - timedelta(seconds=1)
        db_session.flush()

        with pytest.raises(HTTPException) as exc:
            phone_auth.verify_otp(db_session, PHONE, otp.otp_code)
        assert exc.value.status_code == 400

    def test_wrong_code_counts_attempts(self, db_session):
        otp = phone_auth.send_otp(db_session, PHONE, sms=fake_sms())
        wrong = "000000" if otp.otp_code != "000000" else "111111"

        for _ in range(4):
            with pytest.raises(HTTPException) as exc:
                phone_auth.verify_otp(db_session, PHONE, wrong)
            assert exc.value.detail == "Invalid OTP code"

        with pytest.raises(HTTPException) as exc:
            phone_auth.verify_otp(db_session, PHONE, wrong)
        assert exc.value.status_code == 429

        # even the right code is refused once attempts are exhausted
        with pytest.raises(HTTPException) as exc:
            phone_auth.verify_otp(db_session, PHONE, otp.otp_code)
        assert exc.value.status_code == 429
        assert db_session.query(OtpCode).one().attempts == 5


class TestEmailAuth:

    def _register(self, db, email="Jamie@Example.com", mailer=None):
        return email_auth.register_user(db, email, "correct-horse", "Jamie", mailer=mailer or fake_mailer())

    def _code(self, db, email="jamie@example.com"):
        return (
            db.query(EmailVerificationCode)
            .filter(EmailVerificationCode.email == email)
            .order_by(EmailVerificationCode.created_at.desc())
            .first()
            .verification_code
        )

    def test_register_creates_unverified_user(self, db_session):
        mailer = fake_mailer()
        user = self._register(db_session, mailer=mailer)

        assert user.email == "jamie@example.com"
        assert user.email_verified is False
        assert user.password_hash != "correct-horse"
        assert verify_password("correct-horse", user.password_hash)
        mailer.send_verification_email.assert_called_once_with("jamie@example.com", self._code(db_session))

    def test_undelivered_email_still_registers(self, db_session):
        user = self._register(db_session, mailer=fake_mailer(delivered=False))
        assert user.id is not None

    def test_duplicate_email(self, db_session):
        self._register(db_session)
        with pytest.raises(HTTPException) as exc:
            self._register(db_session, email="jamie@example.com")
        assert exc.value.status_code == 409

    def test_login_requires_verification(self, db_session):
        self._register(db_session)
        with pytest.raises(HTTPException) as exc:
            email_auth.login_user(db_session, "jamie@example.com", "correct-horse")
        assert exc.value.status_code == 403
        assert exc.value.detail == email_auth.UNVERIFIED_LOGIN_MESSAGE

    def test_verify_then_login(self, db_session):
        self._register(db_session)
        email_auth.verify_email(db_session, "JAMIE@example.com", self._code(db_session))

        result = email_auth.login_user(db_session, "jamie@example.com", "correct-horse")

        assert result.user.email_verified is True
        assert result.user.is_verified is True
        assert result.user.last_login_at is not None

    def test_wrong_password(self, db_session):
        self._register(db_session)
        with pytest.raises(HTTPException) as exc:
            email_auth.login_user(db_session, "jamie@example.com", "wrong-password")
        assert exc.value.status_code == 401
        assert exc.value.detail == "Invalid email or password"

    def test_unknown_email_has_same_error(self, db_session):
        with pytest.raises(HTTPException) as exc:
            email_auth.login_user(db_session, "nobody@example.com", "whatever")
        assert exc.value.detail == "Invalid email or password"

    def test_bad_verification_code(self, db_session):
        self._register(db_session)
        code = self._code(db_session)
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(HTTPException) as exc:
            email_auth.verify_email(db_session, "jamie@example.com", wrong)
        assert exc.value.detail == "Invalid or expired verification code"

    def test_code_is_single_use(self, db_session):
        self._register(db_session)
        code = self._code(db_session)
        email_auth.verify_email(db_session, "jamie@example.com", code)

        with pytest.raises(HTTPException):
            email_auth.verify_email(db_session, "jamie@example.com", code)

    def test_resend_issues_new_code(self, db_session):
        self._register(db_session)
        mailer = fake_mailer()

        email_auth.resend_verification_code(db_session, "jamie@example.com", mailer=mailer)

        assert db_session.query(EmailVerificationCode).count() == 2
        mailer.send_verification_email.assert_called_once()

    def test_resend_unknown_user(self, db_session):
        with pytest.raises(HTTPException) as exc:
            email_auth.resend_verification_code(db_session, "ghost@example.com", mailer=fake_mailer())
        assert exc.value.status_code == 404
        assert exc.value.detail == "User not found"

    def test_resend_when_already_verified(self, db_session, test_user):
        with pytest.raises(HTTPException) as exc:
            email_auth.resend_verification_code(db_session, test_user.email, mailer=fake_mailer())
        assert exc.value.detail == "Email is already verified"


class TestGoogleAuth:

    PROFILE = {
        "sub": "g-123",
        "email": "Riley@Example.com",
        "email_verified": True,
        "name": "Riley",
        "picture": "https://img.test/r.png",
    }

    def test_creates_google_user(self, db_session):
        user = link_or_create_user(db_session, self.PROFILE)

        assert user.google_id == "g-123"
        assert user.email == "riley@example.com"
        assert user.auth_provider == "google"
        assert user.profile_image == "https://img.test/r.png"
        assert user.email_verified is True

    def test_links_existing_email_account(self, db_session, create_user):
        existing = create_user(email="riley@example.com", name="Riley")

        user = link_or_create_user(db_session, self.PROFILE)

        assert user.id == existing.id
        assert user.google_id == "g-123"
        assert user.auth_provider == "email"

    def test_returning_google_user(self, db_session):
        first = link_or_create_user(db_session, self.PROFILE)
        again = link_or_create_user(db_session, dict(self.PROFILE, email="new@example.com"))

        assert again.id == first.id
        assert db_session.query(User).count() == 1

    def test_default_name(self, db_session):
        user = link_or_create_user(db_session, {"sub": "g-9", "email": "x@example.com", "email_verified": True})
        assert user.name == "Google User"

    @pytest.mark.parametrize("email_verified", [False, None, "true"])
    def test_unverified_email_is_not_linked(self, db_session, create_user, email_verified):
        existing = create_user(email="riley@example.com", name="Riley")
        profile = dict(self.PROFILE, email_verified=email_verified)

        with pytest.raises(GoogleAuthError):
            link_or_create_user(db_session, profile)

        db_session.refresh(existing)
        assert existing.google_id is None
        assert db_session.query(User).count() == 1

    def test_returning_user_skips_email_check(self, db_session):
        first = link_or_create_user(db_session, self.PROFILE)
        profile = {"sub": "g-123", "email": "riley@example.com"}

        assert link_or_create_user(db_session, profile).id == first.id

    @pytest.mark.parametrize("profile", [{"email": "a@example.com"}, {"sub": "g-1"}, {"sub": "g-1", "email": ""}])
    def test_incomplete_profile(self, db_session, profile):
        with pytest.raises(GoogleAuthError):
            link_or_create_user(db_session, profile)

    def test_complete_login_with_profile(self, db_session):
        result = complete_google_login(db_session, "unused-code", profile=self.PROFILE)

        assert result.user.google_id == "g-123"
        assert decode_access_token(result.token)["provider"] == "google"
