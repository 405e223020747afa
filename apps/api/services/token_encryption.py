"""
Token Encryption Service

Fernet encryption for wearable provider access/refresh tokens stored in
`wearable_devices`. Tokens never hit the database in plain text.
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from core.config import settings

logger = logging.getLogger(__name__)


class TokenEncryption:
    """Fernet cipher keyed by TOKEN_ENCRYPTION_KEY."""

    def __init__(self, key: Optional[str] = None):
        key = key or settings.TOKEN_ENCRYPTION_KEY

        if not key:
            if settings.ENVIRONMENT == "production":
                raise RuntimeError("TOKEN_ENCRYPTION_KEY must be set in production")
            # Tokens encrypted with a temporary key are unreadable after restart.
            logger.warning("TOKEN_ENCRYPTION_KEY not set; using a temporary key (development only)")
            key = Fernet.generate_key().decode()

        try:
            self.cipher = Fernet(key.encode() if isinstance(key, str) else key)
        except ValueError as e:
            raise ValueError(f"Invalid TOKEN_ENCRYPTION_KEY: {e}") from e

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        if not plaintext:
            return None
        return self.cipher.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        """Plain token, or None when the value is empty or was not produced by this key."""
        if not ciphertext:
            return None
        try:
            return self.cipher.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.error("Token decryption failed (wrong key or corrupted value)")
            return None


_token_encryption: Optional[TokenEncryption] = None


def get_token_encryption() -> TokenEncryption:
    global _token_encryption
    if _token_encryption is None:
        _token_encryption = TokenEncryption()
    return _token_encryption


def encrypt_token(token: Optional[str]) -> Optional[str]:
    return get_token_encryption().encrypt(token)


def decrypt_token(token: Optional[str]) -> Optional[str]:
    return get_token_encryption().decrypt(token)
