from __future__ import annotations

from typing import Any, Dict, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from autofix.core.config import SESSION_MAX_AGE_SECONDS, SESSION_SECRET
from autofix.schemas.user import User
from autofix.services.kv_store import KeyValueStore
from autofix.services.user_directory import UserDirectory

SESSION_SALT = "workshop-session"


def _serializer() -> URLSafeTimedSerializer:
    if not SESSION_SECRET:
        raise RuntimeError("SESSION_SECRET is not configured.")
    return URLSafeTimedSerializer(SESSION_SECRET, salt=SESSION_SALT)


def create_session_token(user_id: str) -> str:
    return _serializer().dumps({"user_id": user_id})


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = _serializer().loads(token, max_age=SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired, ValueError):
        return None
    if not isinstance(payload, dict) or not payload.get("user_id"):
        return None
    return payload


def user_for_token(store: KeyValueStore, token: str) -> Optional[User]:
    payload = decode_session_token(token)
    if payload is None:
        return None
    return UserDirectory(store).get(str(payload["user_id"]))
