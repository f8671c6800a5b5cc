"""
Encryption utilities

Symmetric Fernet encryption for check-in secrets (door codes, wifi
passwords). The key comes from ``settings.ENCRYPTION_KEY``; a free-form
string is stretched to a valid Fernet key with SHA-256.
"""

import base64
import hashlib

from cryptography.fernet import Fernet
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


def get_encryption_key() -> bytes:
    key = getattr(settings, 'ENCRYPTION_KEY', None)
    if not key:
        raise ImproperlyConfigured(
            "ENCRYPTION_KEY is not configured. "
            "Generate one with: python -c 'from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())'"
        )

    if isinstance(key, str):
        key = base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest())
    return key


def _fernet() -> Fernet:
    return Fernet(get_encryption_key())


def encrypt_string(plaintext: str) -> str:
    """Return the Fernet token for ``plaintext`` as text"""
    if not plaintext:
        return ''
    return _fernet().encrypt(plaintext.encode()).decode()


def decrypt_string(token: str) -> str:
    """
    Decrypt a Fernet token

    Raises cryptography.fernet.InvalidToken when the key does not match.
    """
    if not token:
        return ''
    return _fernet().decrypt(token.encode()).decode()
