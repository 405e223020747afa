"""
Tests for signed OAuth state tokens and wearable token encryption
"""
from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet

from services import oauth_state
from services.oauth_state import (
    PURPOSE_GOOGLE_LOGIN,
    PURPOSE_WEARABLE,
    create_oauth_state,
    verify_oauth_state,
)
from services.token_encryption import TokenEncryption, decrypt_token, encrypt_token


class TestOAuthState:

    def test_payload_survives_the_round_trip(self):
        token = create_oauth_state(PURPOSE_WEARABLE, {"user_id": "u-1", "device_type": "fitbit"})
        payload = verify_oauth_state(token, PURPOSE_WEARABLE)

        assert payload["user_id"] == "u-1"
        assert payload["device_type"] == "fitbit"
        assert payload["purpose"] == PURPOSE_WEARABLE

    def test_tokens_are_unique(self):
        assert create_oauth_state(PURPOSE_WEARABLE) != create_oauth_state(PURPOSE_WEARABLE)

    def test_wrong_purpose_is_rejected(self):
        token = create_oauth_state(PURPOSE_WEARABLE, {"user_id": "u-1"})
        assert verify_oauth_state(token, PURPOSE_GOOGLE_LOGIN) is None

    def test_tampered_body_is_rejected(self):
        token = create_oauth_state(PURPOSE_WEARABLE, {"user_id": "u-1"})
        body, sig = token.split(".")
        forged = create_oauth_state(PURPOSE_WEARABLE, {"user_id": "u-2"}).split(".")[0]

        assert verify_oauth_state(f"{forged}.{sig}", PURPOSE_WEARABLE) is None

    @pytest.mark.parametrize("token", [None, "", "no-dot", "a.b.c", ".sig"])
    def test_malformed_tokens(self, token):
        assert verify_oauth_state(token, PURPOSE_WEARABLE) is None

    def test_expired_state_is_rejected(self):
        with patch.object(oauth_state, "_now", return_value=1_000_000):
            token = create_oauth_state(PURPOSE_GOOGLE_LOGIN)
        with patch.object(oauth_state, "_now", return_value=1_000_000 + 601):
            assert verify_oauth_state(token, PURPOSE_GOOGLE_LOGIN, ttl_s=600) is None
        with patch.object(oauth_state, "_now", return_value=1_000_000 + 599):
            assert verify_oauth_state(token, PURPOSE_GOOGLE_LOGIN, ttl_s=600) is not None


class TestTokenEncryption:

    def test_round_trip_with_configured_key(self):
        encrypted = encrypt_token("access-123")

        assert encrypted != "access-123"
        assert decrypt_token(encrypted) == "access-123"

    def test_empty_values_pass_through_as_none(self):
        assert encrypt_token(None) is None
        assert encrypt_token("") is None
        assert decrypt_token(None) is None

    def test_other_key_cannot_decrypt(self):
        mine = TokenEncryption(Fernet.generate_key().decode())
        theirs = TokenEncryption(Fernet.generate_key().decode())

        assert theirs.decrypt(mine.encrypt("secret")) is None

    def test_invalid_key(self):
        with pytest.raises(ValueError):
            TokenEncryption("not-a-fernet-key")
