"""
Auth component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from academy.domain.entities import OtpCode, User


class UserRepoPort(Protocol):
    def save(self, user: User) -> User: ...

    def get_by_id(self, user_id: UUID) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def list_users(
        self,
        search: str | None = None,
        role: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[User], int]: ...


class OtpRepoPort(Protocol):
    def save(self, otp: OtpCode) -> OtpCode: ...

    def find_valid(
        self, user_id: UUID, purpose: str, code_hash: str, now: datetime
    ) -> OtpCode | None:
        """Newest unused, unexpired OTP matching the hash."""
        ...

    def invalidate(self, user_id: UUID, purpose: str) -> int:
        """Mark every unused OTP of this purpose as used."""
        ...


class AuthCryptoPort(Protocol):
    def hash_password(self, password: str) -> str: ...

    def verify_password(self, plain: str, hashed: str) -> bool: ...

    def hash_token(self, token: str) -> str: ...

    def create_access_token(self, user_id: Any, role: str) -> str: ...

    def create_refresh_token(self, user_id: Any) -> str: ...

    def validate_refresh_token(self, token: str) -> str | None:
        """Subject (user id) of a valid refresh token, else None."""
        ...
