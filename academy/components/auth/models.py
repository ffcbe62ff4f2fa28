"""
Auth component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from academy.components.errors import ComponentError
from academy.domain.entities import OtpPurpose, User

AuthError = ComponentError


@dataclass(frozen=True)
class SignupInput:
    name: str
    email: str
    password: str
    phone: str | None = None


@dataclass(frozen=True)
class VerifyOtpInput:
    email: str
    otp: str
    purpose: OtpPurpose = "EMAIL_VERIFY"


@dataclass(frozen=True)
class ResetPasswordInput:
    email: str
    otp: str
    new_password: str


@dataclass(frozen=True)
class AuthSession:
    """A logged-in user plus the token pair issued for them."""

    user: User
    access_token: str
    refresh_token: str
