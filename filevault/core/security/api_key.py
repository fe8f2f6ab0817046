import secrets
from functools import lru_cache
from typing import Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken
from passlib.context import CryptContext

from filevault.config.settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

KEY_RANDOM_BYTES = 20


def key_prefix() -> str:
    return f"{settings.security_settings.api_key_prefix}-"


def generate_api_key() -> Tuple[str, str]:
    """
    Returns (raw_key, display_prefix).
    raw_key looks like 'fv-<urlsafe token>'; the display prefix keeps only
    the first and last four characters of the token.
    """
    token = secrets.token_urlsafe(KEY_RANDOM_BYTES)
    key = f"{key_prefix()}{token}"
    display = f"{key_prefix()}{token[:4]}...{token[-4:]}"
    return key, display


def hash_api_key(key: str) -> str:
    return pwd_context.hash(key)


def verify_api_key(key: str, hashed_key: str) -> bool:
    try:
        return pwd_context.verify(key, hashed_key)
    except ValueError:
        # malformed hash in the table
        return False


@lru_cache()
def _fernet() -> Fernet:
    return Fernet(settings.security_settings.api_key_encryption_key.encode())


def encrypt_api_key(key: str) -> str:
    return _fernet().encrypt(key.encode()).decode()


def decrypt_api_key(encrypted_key: str) -> Optional[str]:
    """None when the ciphertext was produced with a different encryption key."""
    try:
        return _fernet().decrypt(encrypted_key.encode()).decode()
    except InvalidToken:
        return None


def looks_like_api_key(credential: str) -> bool:
    return credential.startswith(key_prefix())


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """'Bearer <token>' -> '<token>'"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
