"""
Authentication API endpoints.

Provides:
- Phone sign-in (SMS one-time code)
- Email/password registration, verification and login
- Google sign-in (authorization-code redirect flow)
- Current user lookup
"""
import logging
from urllib.parse import urlencode

import requests
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.config import settings
from core.database import get_db
from models import User
from schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    SendOtpRequest,
    UserResponse,
    VerifyEmailRequest,
    VerifyOtpRequest,
)
from services import email_auth, phone_auth
from services.google_auth import GoogleAuthError, complete_google_login, get_authorization_url
from services.oauth_state import PURPOSE_GOOGLE_LOGIN, verify_oauth_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _web_redirect(path: str, **params) -> RedirectResponse:
    query = f"?{urlencode(params)}" if params else ""
    return RedirectResponse(url=f"{settings.WEB_APP_BASE_URL}{path}{query}", status_code=status.HTTP_302_FOUND)


@router.post("/send-otp", response_model=MessageResponse)
def send_otp(request: SendOtpRequest, db: Session = Depends(get_db)):
    phone_auth.send_otp(db, request.phone_number)
    return {"message": "OTP sent successfully"}


@router.post("/verify-otp", response_model=AuthResponse)
def verify_otp(request: VerifyOtpRequest, db: Session = Depends(get_db)):
    """Exchange a valid OTP for a JWT. First successful login creates the account."""
    result = phone_auth.verify_otp(db, request.phone_number, request.otp_code)
    return {"token": result.token, "user": result.user}


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    user = email_auth.register_user(db, request.email, request.password, request.name)
    return {"message": email_auth.REGISTERED_MESSAGE, "user": user}


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    result = email_auth.login_user(db, request.email, request.password)
    return {"token": result.token, "user": result.user}


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(request: VerifyEmailRequest, db: Session = Depends(get_db)):
    email_auth.verify_email(db, request.email, request.verification_code)
    return {"message": email_auth.VERIFIED_MESSAGE}


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(request: ResendVerificationRequest, db: Session = Depends(get_db)):
    email_auth.resend_verification_code(db, request.email)
    return {"message": email_auth.RESENT_MESSAGE}


@router.get("/google")
def google_login():
    """Redirect to Google's consent screen."""
    try:
        return RedirectResponse(url=get_authorization_url(), status_code=status.HTTP_302_FOUND)
    except GoogleAuthError as e:
        logger.error(f"Google sign-in unavailable: {e}")
        return _web_redirect("/login", error="google_unavailable")


@router.get("/google/callback")
def google_callback(
    code: str = Query(None),
    state: str = Query(None),
    db: Session = Depends(get_db),
):
    if not code:
        return _web_redirect("/login", error="missing_parameters")
    if not verify_oauth_state(state, PURPOSE_GOOGLE_LOGIN):
        return _web_redirect("/login", error="invalid_state")

    try:
        result = complete_google_login(db, code)
    except (requests.RequestException, GoogleAuthError) as e:
        logger.error(f"Google sign-in failed: {e}")
        return _web_redirect("/login", error="google_auth_failed")

    db.commit()
    return _web_redirect("/auth/callback", token=result.token)


@router.get("/user", response_model=UserResponse)
def get_user(current_user: User = Depends(get_current_user)):
    return current_user
