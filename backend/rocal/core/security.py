from __future__ import annotations

from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

from rocal.core.config import settings

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
_MAX_BCRYPT_PASSWORD_BYTES = 72
_SESSION_SALT = "rocal-session"
_ACCESS_TOKEN_SALT = "rocal-access-token"


def is_password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > _MAX_BCRYPT_PASSWORD_BYTES


def hash_password(password: str) -> str:
    if is_password_too_long(password):
        raise RuntimeError("Password too long for bcrypt (max 72 bytes). Use a shorter password.")
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _pwd_context.verify(password, password_hash)


def _get_serializer(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.required_secret_key, salt=salt)


def create_session_token(payload: dict[str, Any]) -> str:
    return _get_serializer(_SESSION_SALT).dumps(payload)


def decode_session_token(token: str, max_age_seconds: int) -> dict[str, Any] | None:
    try:
        return _get_serializer(_SESSION_SALT).loads(token, max_age=max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None


def create_access_token(user_id: int) -> str:
    return _get_serializer(_ACCESS_TOKEN_SALT).dumps({"uid": user_id})


def decode_access_token(token: str, max_age_seconds: int) -> int | None:
    try:
        payload = _get_serializer(_ACCESS_TOKEN_SALT).loads(token, max_age=max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None
    try:
        return int(payload.get("uid", 0)) or None
    except (TypeError, ValueError):
        return None
