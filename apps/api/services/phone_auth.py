"""
Phone OTP Authentication

Passwordless sign-in with a 6-digit SMS code:
1. send_otp: store a short-lived code keyed by the hashed phone number, text it
2. verify_otp: check the latest live code, create the user on first login,
   return a JWT

Codes are looked up by HMAC of the number so the otp_codes table never holds
a raw phone number.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import status
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import APIException, TooManyAttemptsError
from core.security import create_access_token, generate_numeric_code, hash_phone_number
from models import OtpCode, User, utcnow
from services.sms_service import SmsService, get_sms_service

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    token: str
    user: User


def issue_token(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "provider": user.auth_provider})


def _latest_live_code(db: Session, phone_hash: str) -> Optional[OtpCode]:
    return (
        db.query(OtpCode)
        .filter(
            OtpCode.phone_number_hash == phone_hash,
            OtpCode.is_used.is_(False),
            OtpCode.expires_at > utcnow(),
        )
        .order_by(OtpCode.created_at.desc())
        .first()
    )


def send_otp(db: Session, phone_number: str, sms: Optional[SmsService] = None) -> OtpCode:
    """Create a fresh OTP for the number and deliver it by SMS."""
    code = generate_numeric_code(6)
    otp = OtpCode(
        phone_number_hash=hash_phone_number(phone_number),
        otp_code=code,
        expires_at=utcnow() + timedelta(minutes=settings.OTP_TTL_MINUTES),
        attempts=0,
        is_used=False,
    )
    db.add(otp)
    db.flush()

    sms = sms or get_sms_service()
    if not sms.send_otp(phone_number, code):
        raise APIException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send verification code",
            error_code="SMS_FAILED",
        )

    logger.info("OTP issued", extra={"extra_fields": {"otp_id": str(otp.id)}})
    return otp


def verify_otp(db: Session, phone_number: str, otp_code: str) -> AuthResult:
    """
    Check `otp_code` against the most recent unused, unexpired code.

    Wrong guesses are committed before raising so the attempt counter
    survives the request rollback.
    """
    phone_hash = hash_phone_number(phone_number)
    otp = _latest_live_code(db, phone_hash)
    if otp is None:
        raise APIException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired OTP",
            error_code="OTP_INVALID",
        )

    if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
        raise TooManyAttemptsError()

    if otp.otp_code != otp_code:
        otp.attempts += 1
        db.commit()
        if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
            raise TooManyAttemptsError()
        raise APIException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid OTP code",
            error_code="OTP_INVALID",
        )

    otp.is_used = True

    user = db.query(User).filter(User.phone_number_hash == phone_hash).first()
    if user is None:
        user = User(
            phone_number=phone_number,
            phone_number_hash=phone_hash,
            auth_provider="phone",
            is_verified=True,
        )
        db.add(user)
        logger.info("New phone user created")
    user.last_login_at = utcnow()
    db.flush()

    return AuthResult(token=issue_token(user), user=user)
