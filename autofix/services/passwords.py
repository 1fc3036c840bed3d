from __future__ import annotations

import logging

from passlib.context import CryptContext
from passlib.exc import MissingBackendError

logger = logging.getLogger(__name__)

FALLBACK_SCHEME = "pbkdf2_sha256"

_pwd_context = CryptContext(schemes=["bcrypt", FALLBACK_SCHEME], deprecated="auto")
_fallback_context = CryptContext(schemes=[FALLBACK_SCHEME])


def hash_password(password: str) -> str:
    try:
        return _pwd_context.hash(password)
    except (ValueError, AttributeError, MissingBackendError):
        # bcrypt backend missing or incompatible with this passlib release
        logger.warning("bcrypt unavailable, hashing with %s", FALLBACK_SCHEME)
        return _fallback_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return _pwd_context.verify(password, password_hash)
    except (ValueError, TypeError, AttributeError, MissingBackendError):
        return False
