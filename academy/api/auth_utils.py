"""
Password hashing and JWT helpers.

Access and refresh tokens are signed with different secrets and carry a
``type`` claim, so one can never be replayed as the other.
"""

import os
from datetime import UTC, datetime, timedelta
from typing import Any, Literal, cast
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

TokenType = Literal["access", "refresh"]

ALGORITHM = "HS256"
ISSUER = "shrestha-academy"
_SECRETS: dict[TokenType, str] = {
    "access": os.environ.get("ACADEMY_SECRET_KEY", "dev-secret-unsafe"),
    "refresh": os.environ.get("ACADEMY_REFRESH_SECRET_KEY", "dev-refresh-secret-unsafe"),
}

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return cast(str, pwd_context.hash(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return cast(bool, pwd_context.verify(plain_password, hashed_password))
    except ValueError:
        # unrecognised hash format
        return False


def password_needs_rehash(hashed_password: str) -> bool:
    return cast(bool, pwd_context.needs_update(hashed_password))


def issue_token(
    subject: str,
    token_type: TokenType,
    ttl: timedelta,
    claims: dict[str, Any] | None = None,
    now_utc: datetime | None = None,
) -> str:
    now = now_utc or datetime.now(UTC)
    payload = {
        **(claims or {}),
        "sub": subject,
        "type": token_type,
        "iss": ISSUER,
        "iat": now,
        "exp": now + ttl,
        "jti": uuid4().hex,
    }
    return cast(str, jwt.encode(payload, _SECRETS[token_type], algorithm=ALGORITHM))


def decode_token(token: str, token_type: TokenType) -> dict[str, Any] | None:
    """Claims of a valid, unexpired token of ``token_type``; None otherwise."""
    try:
        payload = jwt.decode(token, _SECRETS[token_type], algorithms=[ALGORITHM], issuer=ISSUER)
    except JWTError:
        return None
    if payload.get("type") != token_type or not isinstance(payload.get("sub"), str):
        return None
    return cast(dict[str, Any], payload)


def decode_access_token(token: str) -> dict[str, Any] | None:
    return decode_token(token, "access")
