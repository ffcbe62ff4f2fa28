"""
Auth component - Signup, OTP verification, login and password resets.
"""

from .component import (
    FORGOT_PASSWORD_MESSAGE,
    AuthService,
    generate_otp,
    is_well_formed_otp,
    normalise_email,
    validate_email,
    validate_password,
)
from .models import AuthError, AuthSession, ResetPasswordInput, SignupInput, VerifyOtpInput
from .ports import AuthCryptoPort, OtpRepoPort, UserRepoPort

__all__ = [
    # Service
    "AuthService",
    "FORGOT_PASSWORD_MESSAGE",
    # Pure functions
    "generate_otp",
    "is_well_formed_otp",
    "normalise_email",
    "validate_email",
    "validate_password",
    # Models
    "AuthError",
    "AuthSession",
    "ResetPasswordInput",
    "SignupInput",
    "VerifyOtpInput",
    # Ports
    "AuthCryptoPort",
    "OtpRepoPort",
    "UserRepoPort",
]
