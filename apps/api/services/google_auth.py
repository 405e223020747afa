"""
Google Sign-In

Authorization-code flow against Google's OAuth endpoints with plain
`requests` calls. The returned profile is linked to an existing account by
google_id, then by email; otherwise a new Google user is created.
"""
import logging
from typing import Dict, Optional
from urllib.parse import urlencode

import requests
from sqlalchemy.orm import Session

from core.config import settings
from models import User, utcnow
from services.oauth_state import PURPOSE_GOOGLE_LOGIN, create_oauth_state
from services.phone_auth import AuthResult, issue_token

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_LOGIN_SCOPES = "openid email profile"


class GoogleAuthError(RuntimeError):
    pass


def redirect_uri() -> str:
    return f"{settings.API_BASE_URL}/api/auth/google/callback"


def get_authorization_url() -> str:
    if not settings.GOOGLE_CLIENT_ID:
        raise GoogleAuthError("GOOGLE_CLIENT_ID is not set")

    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri(),
        "response_type": "code",
        "scope": GOOGLE_LOGIN_SCOPES,
        "state": create_oauth_state(PURPOSE_GOOGLE_LOGIN),
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"


def exchange_code_for_token(code: str) -> Dict:
    r = requests.post(
        GOOGLE_TOKEN_URL,
        data={
            "client_id": settings.GOOGLE_CLIENT_ID,
            "client_secret": settings.GOOGLE_CLIENT_SECRET,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri(),
        },
        timeout=settings.EXTERNAL_API_TIMEOUT,
    )
    r.raise_for_status()
    return r.json()


def fetch_profile(access_token: str) -> Dict:
    r = requests.get(
        GOOGLE_USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=settings.EXTERNAL_API_TIMEOUT,
    )
    r.raise_for_status()
    return r.json()


def link_or_create_user(db: Session, profile: Dict) -> User:
    """
    Resolve a Google profile (`sub`, `email`, `email_verified`, `name`, `picture`)
    to a user. A new link or account needs a Google-verified email.
    """
    google_id = profile.get("sub")
    email = (profile.get("email") or "").strip().lower()
    if not google_id:
        raise GoogleAuthError("Google profile has no subject id")
    if not email:
        raise GoogleAuthError("No email found in Google profile")

    user = db.query(User).filter(User.google_id == google_id).first()
    if user is None:
        # Email matches only count when Google vouches for the address.
        if profile.get("email_verified") is not True:
            raise GoogleAuthError("Google account email is not verified")
        user = db.query(User).filter(User.email == email).first()
        if user is not None:
            user.google_id = google_id
            logger.info("Linked Google account to existing user", extra={"extra_fields": {"user_id": str(user.id)}})
        else:
            user = User(
                google_id=google_id,
                email=email,
                name=profile.get("name") or "Google User",
                profile_image=profile.get("picture"),
                auth_provider="google",
                email_verified=True,
                is_verified=True,
            )
            db.add(user)

    user.last_login_at = utcnow()
    db.flush()
    return user


def complete_google_login(db: Session, code: str, profile: Optional[Dict] = None) -> AuthResult:
    """Exchange the callback code, fetch the profile and sign the user in."""
    if profile is None:
        token_data = exchange_code_for_token(code)
        access_token = token_data.get("access_token")
        if not access_token:
            raise GoogleAuthError("Google token response had no access_token")
        profile = fetch_profile(access_token)

    user = link_or_create_user(db, profile)
    return AuthResult(token=issue_token(user), user=user)
