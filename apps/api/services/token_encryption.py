"""
Token Encryption Service

Encrypts and decrypts Strava OAuth tokens using Fernet symmetric encryption.
All tokens are encrypted at rest in the database.

ARCHITECTURE:
- Uses cryptography library (Fernet)
- Encryption key from settings (TOKEN_ENCRYPTION_KEY)
- Never stores plain credentials
"""

from cryptography.fernet import Fernet, InvalidToken
from typing import Optional
import logging
from core.config import settings

logger = logging.getLogger(__name__)


class TokenEncryption:
    """Handles encryption/decryption of OAuth tokens."""

    def __init__(self, encryption_key: Optional[str] = None):
        encryption_key = encryption_key or settings.TOKEN_ENCRYPTION_KEY

        if not encryption_key:
            # SECURITY: Fail hard in production - no auto-generated keys
            if settings.ENVIRONMENT == "production":
                raise RuntimeError(
                    "TOKEN_ENCRYPTION_KEY must be set in production. "
                    "Generate with: python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
                )
            # A per-process key: tokens written by the API cannot be read by the worker.
            logger.error(
                "TOKEN_ENCRYPTION_KEY not set. Generating a temporary per-process key (NOT FOR PRODUCTION); "
                "the Celery worker will not be able to decrypt tokens stored by the API"
            )
            encryption_key = Fernet.generate_key().decode()

        if isinstance(encryption_key, str):
            encryption_key = encryption_key.encode()

        try:
            self.cipher = Fernet(encryption_key)
        except Exception as e:
            logger.error(f"Failed to initialize Fernet cipher: {e}")
            raise ValueError(f"Invalid encryption key format: {e}")

    def encrypt(self, plaintext: str) -> Optional[str]:
        """
        Encrypt a plaintext token.

        Returns the encrypted token as a base64 string, or None for empty input.
        """
        if not plaintext:
            return None
        return self.cipher.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> Optional[str]:
        """
        Decrypt an encrypted token.

        Returns None when the input is empty or was not produced with this key.
        """
        if not ciphertext:
            return None

        try:
            return self.cipher.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.error("Token decryption failed: invalid token or key")
            return None


# Global instance
_token_encryption: Optional[TokenEncryption] = None


def get_token_encryption() -> TokenEncryption:
    """Get or create global token encryption instance."""
    global _token_encryption
    if _token_encryption is None:
        _token_encryption = TokenEncryption()
    return _token_encryption


def encrypt_token(token: Optional[str]) -> Optional[str]:
    """Convenience function to encrypt a token."""
    if not token:
        return None
    return get_token_encryption().encrypt(token)


def decrypt_token(token: Optional[str]) -> Optional[str]:
    """Convenience function to decrypt a token."""
    if not token:
        return None
    return get_token_encryption().decrypt(token)
