"""
Auth component - OTP-gated registration and token sessions.

Signup creates an unverified account and mails a one-time code; the code
verifies the email and logs the user in. Password resets reuse the same
OTP machinery with a different purpose.

Functional core (validation, OTP generation) plus AuthService shell.
"""

from __future__ import annotations

import logging
import re
import secrets
from datetime import timedelta
from uuid import UUID

from academy.core.ports.time import ClockPort
from academy.core.services import mail_templates
from academy.core.services.notifier import Notifier
from academy.domain.entities import OtpCode, OtpPurpose, User
from academy.rules.models import AuthRules

from .models import AuthError, AuthSession, ResetPasswordInput, SignupInput, VerifyOtpInput
from .ports import AuthCryptoPort, OtpRepoPort, UserRepoPort

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset code has been sent"


# --- Pure Functions (Functional Core) ---


def normalise_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_email(email: str) -> list[AuthError]:
    if not email:
        return [AuthError("email_required", "Email is required", "email")]
    if not EMAIL_REGEX.match(email):
        return [AuthError("email_invalid", "Invalid email address", "email")]
    return []


def validate_password(password: str | None, rules: AuthRules) -> list[AuthError]:
    """Password policy: minimum length, at least one letter and one digit."""
    policy = rules.password
    if not password:
        return [AuthError("password_required", "Password is required", "password")]
    problems = []
    if len(password) < policy.min_length:
        problems.append(f"at least {policy.min_length} characters")
    if policy.require_letter and not re.search(r"[A-Za-z]", password):
        problems.append("a letter")
    if policy.require_digit and not re.search(r"\d", password):
        problems.append("a digit")
    if problems:
        return [
            AuthError(
                "weak_password",
                "Password must contain " + ", ".join(problems),
                "password",
            )
        ]
    return []


def generate_otp(length: int) -> str:
    """Zero-padded numeric code from a CSPRNG."""
    return str(secrets.randbelow(10**length)).zfill(length)


def is_well_formed_otp(otp: str | None, length: int) -> bool:
    return bool(otp) and len(otp or "") == length and (otp or "").isdigit()


# --- Service ---


class AuthService:
    def __init__(
        self,
        users: UserRepoPort,
        otps: OtpRepoPort,
        crypto: AuthCryptoPort,
        notifier: Notifier,
        clock: ClockPort,
        rules: AuthRules,
    ) -> None:
        self._users = users
        self._otps = otps
        self._crypto = crypto
        self._notifier = notifier
        self._clock = clock
        self._rules = rules

    # --- OTP helpers ---

    def _issue_otp(self, user: User, purpose: OtpPurpose) -> str:
        self._otps.invalidate(user.id, purpose)
        code = generate_otp(self._rules.otp.length)
        now = self._clock.now_utc()
        self._otps.save(
            OtpCode(
                user_id=user.id,
                code_hash=self._crypto.hash_token(code),
                purpose=purpose,
                expires_at=now + timedelta(minutes=self._rules.otp.ttl_minutes),
                created_at=now,
            )
        )
        self._notifier.send(
            mail_templates.otp_email(
                user.email, user.name, code, purpose, self._rules.otp.ttl_minutes
            )
        )
        return code

    def _otp_format_errors(self, otp: str | None) -> list[AuthError]:
        if is_well_formed_otp(otp, self._rules.otp.length):
            return []
        return [AuthError("invalid_otp_format", f"OTP must be {self._rules.otp.length} digits", "otp")]

    def _consume_otp(
        self, user: User, otp: str, purpose: OtpPurpose, mark_used: bool = True
    ) -> list[AuthError]:
        errors = self._otp_format_errors(otp)
        if errors:
            return errors
        record = self._otps.find_valid(
            user.id, purpose, self._crypto.hash_token(otp), self._clock.now_utc()
        )
        if record is None:
            return [AuthError("invalid_or_expired_otp", "Invalid or expired OTP", "otp")]
        if mark_used:
            record.is_used = True
            self._otps.save(record)
        return []

    def _session(self, user: User) -> AuthSession:
        now = self._clock.now_utc()
        user.last_login_at = now
        user.updated_at = now
        self._users.save(user)
        return AuthSession(
            user=user,
            access_token=self._crypto.create_access_token(user.id, user.role),
            refresh_token=self._crypto.create_refresh_token(user.id),
        )

    # --- Registration ---

    def signup(self, data: SignupInput) -> tuple[User | None, list[AuthError]]:
        errors: list[AuthError] = []
        name = (data.name or "").strip()
        email = normalise_email(data.email)
        if not name:
            errors.append(AuthError("name_required", "Name is required", "name"))
        errors.extend(validate_email(email))
        if not data.password:
            errors.append(AuthError("password_required", "Password is required", "password"))
        if errors:
            return None, errors

        if self._users.get_by_email(email):
            return None, [AuthError("email_taken", "User with this email already exists", "email")]

        errors = validate_password(data.password, self._rules)
        if errors:
            return None, errors

        now = self._clock.now_utc()
        user = User(
            name=name,
            email=email,
            password_hash=self._crypto.hash_password(data.password),
            phone=(data.phone or "").strip() or None,
            is_verified=False,
            created_at=now,
            updated_at=now,
        )
        self._users.save(user)
        self._issue_otp(user, "EMAIL_VERIFY")
        logger.info("User %s registered, awaiting email verification", user.id)
        return user, []

    def verify_otp(self, data: VerifyOtpInput) -> tuple[AuthSession | None, list[AuthError]]:
        email = normalise_email(data.email)
        if not email or not data.otp:
            return None, [AuthError("otp_required", "Email and OTP are required")]
        errors = self._otp_format_errors(data.otp)
        if errors:
            return None, errors
        user = self._users.get_by_email(email)
        if not user:
            return None, [AuthError("user_not_found", "User not found", "email")]

        verifying_email = data.purpose == "EMAIL_VERIFY"
        # Reset codes stay valid here; reset_password consumes them.
        errors = self._consume_otp(user, data.otp, data.purpose, mark_used=verifying_email)
        if errors:
            return None, errors

        if verifying_email:
            user.is_verified = True
            logger.info("User %s verified email", user.id)
            return self._session(user), []
        return AuthSession(user=user, access_token="", refresh_token=""), []

    def resend_otp(self, email: str, purpose: OtpPurpose = "EMAIL_VERIFY") -> list[AuthError]:
        user = self._users.get_by_email(normalise_email(email))
        if not user:
            return [AuthError("user_not_found", "User not found", "email")]
        if purpose == "EMAIL_VERIFY" and user.is_verified:
            return [AuthError("already_verified", "Email is already verified", "email")]
        self._issue_otp(user, purpose)
        return []

    # --- Sessions ---

    def login(self, email: str, password: str) -> tuple[AuthSession | None, list[AuthError]]:
        if not email or not password:
            return None, [AuthError("credentials_required", "Email and password are required")]
        user = self._users.get_by_email(normalise_email(email))
        if not user or not self._crypto.verify_password(password, user.password_hash):
            return None, [AuthError("invalid_credentials", "Invalid email or password")]
        if not user.is_active:
            return None, [AuthError("account_disabled", "Your account has been deactivated")]
        if not user.is_verified:
            return None, [AuthError("email_not_verified", "Please verify your email first")]
        return self._session(user), []

    def refresh(self, refresh_token: str | None) -> tuple[AuthSession | None, list[AuthError]]:
        subject = self._crypto.validate_refresh_token(refresh_token) if refresh_token else None
        invalid = [AuthError("invalid_refresh_token", "Invalid or expired refresh token")]
        if not subject:
            return None, invalid
        try:
            user = self._users.get_by_id(UUID(subject))
        except ValueError:
            return None, invalid
        if not user or not user.is_active:
            return None, invalid
        return (
            AuthSession(
                user=user,
                access_token=self._crypto.create_access_token(user.id, user.role),
                refresh_token=self._crypto.create_refresh_token(user.id),
            ),
            [],
        )

    # --- Passwords ---

    def forgot_password(self, email: str) -> str:
        """Same answer whether or not the account exists."""
        user = self._users.get_by_email(normalise_email(email))
        if user and user.is_active:
            self._issue_otp(user, "PASSWORD_RESET")
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, data: ResetPasswordInput) -> list[AuthError]:
        errors = self._otp_format_errors(data.otp)
        if errors:
            return errors
        user = self._users.get_by_email(normalise_email(data.email))
        if not user:
            return [AuthError("user_not_found", "User not found", "email")]
        errors = validate_password(data.new_password, self._rules)
        if errors:
            return errors
        errors = self._consume_otp(user, data.otp, "PASSWORD_RESET")
        if errors:
            return errors
        user.password_hash = self._crypto.hash_password(data.new_password)
        user.updated_at = self._clock.now_utc()
        self._users.save(user)
        logger.info("Password reset for user %s", user.id)
        return []

    def change_password(self, user: User, current: str, new: str) -> list[AuthError]:
        if not self._crypto.verify_password(current or "", user.password_hash):
            return [
                AuthError(
                    "current_password_incorrect",
                    "Current password is incorrect",
                    "current_password",
                )
            ]
        errors = validate_password(new, self._rules)
        if errors:
            return errors
        user.password_hash = self._crypto.hash_password(new)
        user.updated_at = self._clock.now_utc()
        self._users.save(user)
        return []

    # --- Profile & admin ---

    def update_profile(
        self, user: User, name: str | None = None, phone: str | None = None
    ) -> tuple[User | None, list[AuthError]]:
        if name is not None:
            if not name.strip():
                return None, [AuthError("name_required", "Name is required", "name")]
            user.name = name.strip()
        if phone is not None:
            user.phone = phone.strip() or None
        user.updated_at = self._clock.now_utc()
        return self._users.save(user), []

    def list_users(
        self, search: str | None, role: str | None, offset: int, limit: int
    ) -> tuple[list[User], int]:
        return self._users.list_users(search=search, role=role, offset=offset, limit=limit)

    def set_active(self, user_id: UUID, is_active: bool) -> tuple[User | None, list[AuthError]]:
        user = self._users.get_by_id(user_id)
        if not user:
            return None, [AuthError("user_not_found", "User not found")]
        user.is_active = is_active
        user.updated_at = self._clock.now_utc()
        return self._users.save(user), []

    def create_admin(self, name: str, email: str, password: str) -> tuple[User | None, list[AuthError]]:
        """Verified ADMIN account; promotes an existing user with that email."""
        email = normalise_email(email)
        errors = validate_email(email) + validate_password(password, self._rules)
        if errors:
            return None, errors
        now = self._clock.now_utc()
        user = self._users.get_by_email(email)
        if user:
            user.role = "ADMIN"
            user.is_verified = True
            user.updated_at = now
        else:
            user = User(
                name=name.strip() or "Admin",
                email=email,
                password_hash=self._crypto.hash_password(password),
                role="ADMIN",
                is_verified=True,
                created_at=now,
                updated_at=now,
            )
        return self._users.save(user), []
