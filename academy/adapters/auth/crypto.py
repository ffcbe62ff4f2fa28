import hashlib
from datetime import timedelta
from typing import Any

from academy.api.auth_utils import (
    decode_token,
    get_password_hash,
    issue_token,
    password_needs_rehash,
    verify_password,
)


class JWTAuthAdapter:
    """Argon2 password hashing plus HS256 access/refresh tokens for the auth component."""

    def __init__(self, access_ttl_minutes: int = 15, refresh_ttl_days: int = 7) -> None:
        self.access_ttl = timedelta(minutes=access_ttl_minutes)
        self.refresh_ttl = timedelta(days=refresh_ttl_days)

    def hash_password(self, password: str) -> str:
        return get_password_hash(password)

    def verify_password(self, plain: str, hashed: str) -> bool:
        return verify_password(plain, hashed)

    def needs_rehash(self, hashed: str) -> bool:
        return password_needs_rehash(hashed)

    def hash_token(self, token: str) -> str:
        # OTPs are stored as sha256 digests, never in clear
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def create_access_token(self, user_id: Any, role: str) -> str:
        return issue_token(str(user_id), "access", self.access_ttl, {"role": role})

    def create_refresh_token(self, user_id: Any) -> str:
        return issue_token(str(user_id), "refresh", self.refresh_ttl)

    def validate_refresh_token(self, token: str) -> str | None:
        payload = decode_token(token, "refresh")
        return payload["sub"] if payload else None
