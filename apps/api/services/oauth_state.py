"""
Signed OAuth state tokens.

Provider callbacks (wearable connect, Google sign-in) carry a `state` value
that must come back untouched. The token is an HMAC-signed, URL-safe JSON
payload with a purpose, a nonce and an issued-at time, so a callback can be
tied to the user who started the flow and replays expire.
"""

import base64
import hashlib
import hmac
import json
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.config import settings

logger = logging.getLogger(__name__)

PURPOSE_WEARABLE = "wearable_connect"
PURPOSE_GOOGLE_LOGIN = "google_login"


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    return base64.urlsafe_b64decode((value + "=" * (-len(value) % 4)).encode("utf-8"))


def _signature(body: str) -> str:
    mac = hmac.new(settings.SECRET_KEY.encode("utf-8"), body.encode("utf-8"), hashlib.sha256)
    return _b64url_encode(mac.digest())


def _now() -> int:
    return int(datetime.now(timezone.utc).timestamp())


def create_oauth_state(purpose: str, data: Optional[Dict[str, Any]] = None) -> str:
    """Sign `data` for one OAuth round-trip of the given purpose."""
    payload = dict(data or {})
    payload.update({
        "purpose": purpose,
        "nonce": secrets.token_urlsafe(8),
        "iat": _now(),
    })
    body = _b64url_encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    return f"{body}.{_signature(body)}"


def verify_oauth_state(
    token: Optional[str],
    purpose: str,
    *,
    ttl_s: Optional[int] = None,
) -> Optional[Dict[str, Any]]:
    """
    Return the payload when the signature, purpose and age all check out,
    otherwise None.
    """
    if not token or token.count(".") != 1:
        return None

    body, sig = token.split(".")
    if not body or not hmac.compare_digest(sig, _signature(body)):
        logger.warning("OAuth state signature mismatch")
        return None

    try:
        payload = json.loads(_b64url_decode(body))
        issued_at = int(payload["iat"])
    except (ValueError, KeyError, TypeError):
        return None

    if payload.get("purpose") != purpose:
        return None

    ttl = settings.OAUTH_STATE_TTL_S if ttl_s is None else ttl_s
    if ttl > 0 and _now() - issued_at > ttl:
        logger.info("OAuth state expired", extra={"extra_fields": {"purpose": purpose}})
        return None

    return payload
