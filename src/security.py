"""
security.py

Password hashing and session tokens for operator sign-in.

Tokens are HS256 JWTs whose `sub` is the operator id and whose `jti` is
the OperatorSession id, so a session can be revoked on sign-out even
though the token itself is still validly signed.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from passlib.context import CryptContext

from config import settings


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_access_token(
    operator_id: uuid.UUID,
    session_id: uuid.UUID,
    ttl_seconds: Optional[int] = None,
) -> Tuple[str, datetime, datetime]:
    """Return (token, issued_at, expires_at)."""
    now = datetime.now(tz=timezone.utc)
    expires = now + timedelta(seconds=ttl_seconds or settings.jwt_ttl_seconds)
    payload = {
        "sub": str(operator_id),
        "jti": str(session_id),
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, now, expires


def decode_token(token: str) -> Tuple[uuid.UUID, uuid.UUID]:
    """
    Return (operator_id, session_id) carried by a token.

    Raises jwt.InvalidTokenError (including ExpiredSignatureError) for a
    token that is malformed, tampered with or expired.
    """
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    try:
        return uuid.UUID(str(payload["sub"])), uuid.UUID(str(payload["jti"]))
    except (KeyError, ValueError) as exc:
        raise jwt.InvalidTokenError("Token subject or id is malformed.") from exc
