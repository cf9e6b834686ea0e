"""Encryption of stored DPD credentials.

Passwords are encrypted with Fernet (AES-128-CBC plus HMAC-SHA256) under a
key from ``DPD_ENCRYPTION_KEY`` or passed explicitly. Generate a key once
with :func:`generate_encryption_key` and keep it out of the database.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel, ConfigDict

from litestar_dpdlocal.config import DPDCredentials, DPDSettings
from litestar_dpdlocal.exceptions import ConfigurationError, EncryptionError

logger = logging.getLogger(__name__)

Key = str | bytes


class EncryptedCredentials(BaseModel):
    """Credentials as stored by the host application."""

    model_config = ConfigDict(frozen=True)

    account_number: str
    username: str
    password_hash: str


def generate_encryption_key() -> str:
    return Fernet.generate_key().decode("ascii")


def _fernet(key: Key | None) -> Fernet:
    if key is None:
        key = DPDSettings().encryption_key
    if not key:
        raise ConfigurationError(
            "DPD_ENCRYPTION_KEY environment variable is required"
        )
    try:
        return Fernet(key)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError("Invalid DPD encryption key") from exc


def encrypt(text: str, key: Key | None = None) -> str:
    return _fernet(key).encrypt(text.encode("utf-8")).decode("ascii")


def decrypt(token: str, key: Key | None = None) -> str:
    fernet = _fernet(key)
    try:
        return fernet.decrypt(token.encode("ascii")).decode("utf-8")
    except (InvalidToken, UnicodeError) as exc:
        logger.error("Failed to decrypt DPD data")
        raise EncryptionError("Failed to decrypt data") from exc


def encrypt_credentials(
    credentials: DPDCredentials, key: Key | None = None
) -> EncryptedCredentials:
    return EncryptedCredentials(
        account_number=credentials.account_number,
        username=credentials.username,
        password_hash=encrypt(credentials.password, key),
    )


def decrypt_credentials(
    encrypted: EncryptedCredentials, key: Key | None = None
) -> DPDCredentials:
    return DPDCredentials(
        account_number=encrypted.account_number,
        username=encrypted.username,
        password=decrypt(encrypted.password_hash, key),
    )


def hash_data(data: str) -> str:
    """SHA-256 hex digest, for integrity checks."""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def verify_hash(data: str, expected: str) -> bool:
    return hmac.compare_digest(
        hash_data(data).encode("utf-8"), expected.encode("utf-8")
    )
