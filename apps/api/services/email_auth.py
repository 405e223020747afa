"""
Email/Password Authentication

Registration sends a 6-digit code by email; login is refused until the
address is verified.
"""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from core.security import generate_numeric_code, get_password_hash, verify_password
from models import EmailVerificationCode, User, utcnow
from services.email_service import EmailService, get_email_service
from services.phone_auth import AuthResult, issue_token

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Account created successfully. Check your email for a verification code."
VERIFIED_MESSAGE = "Email verified successfully! You can now log in."
RESENT_MESSAGE = "A new verification code has been sent to your email."
UNVERIFIED_LOGIN_MESSAGE = (
    "Please verify your email address before logging in. Check your inbox for verification code."
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _issue_verification_code(db: Session, email: str, mailer: Optional[EmailService]) -> None:
    code = generate_numeric_code(6)
    db.add(EmailVerificationCode(
        email=email,
        verification_code=code,
        expires_at=utcnow() + timedelta(minutes=settings.EMAIL_CODE_TTL_MINUTES),
        attempts=0,
        is_used=False,
    ))
    db.flush()

    mailer = mailer or get_email_service()
    if not mailer.send_verification_email(email, code):
        # The code is stored; the user can ask for a resend.
        logger.warning(f"Verification email to {email} was not delivered")


def register_user(
    db: Session,
    email: str,
    password: str,
    name: str,
    mailer: Optional[EmailService] = None,
) -> User:
    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("An account with this email already exists")

    user = User(
        email=email,
        password_hash=get_password_hash(password),
        name=name,
        auth_provider="email",
        email_verified=False,
        is_verified=False,
    )
    db.add(user)
    db.flush()

    _issue_verification_code(db, email, mailer)
    logger.info("User registered", extra={"extra_fields": {"user_id": str(user.id)}})
    return user


def login_user(db: Session, email: str, password: str) -> AuthResult:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user or not user.password_hash or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")

    if not user.email_verified:
        raise ForbiddenError(UNVERIFIED_LOGIN_MESSAGE)

    user.last_login_at = utcnow()
    db.flush()
    return AuthResult(token=issue_token(user), user=user)


def verify_email(db: Session, email: str, code: str) -> None:
    email = normalize_email(email)
    verification = (
        db.query(EmailVerificationCode)
        .filter(
            EmailVerificationCode.email == email,
            EmailVerificationCode.verification_code == code,
            EmailVerificationCode.is_used.is_(False),
            EmailVerificationCode.expires_at > utcnow(),
        )
        .order_by(EmailVerificationCode.created_at.desc())
        .first()
    )
    if verification is None:
        raise ValidationError("Invalid or expired verification code")

    verification.is_used = True
    user = db.query(User).filter(User.email == email).first()
    if user is not None:
        user.email_verified = True
        user.is_verified = True
    db.flush()


def resend_verification_code(db: Session, email: str, mailer: Optional[EmailService] = None) -> None:
    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise NotFoundError("User")
    if user.email_verified:
        raise ValidationError("Email is already verified")

    _issue_verification_code(db, email, mailer)
