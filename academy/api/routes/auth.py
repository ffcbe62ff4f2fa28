from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from academy.api.deps import (
    client_ip,
    get_auth_service,
    get_current_user,
    get_rate_limiter,
    get_rules,
)
from academy.api.envelope import ApiError, ok, raise_for_errors
from academy.api.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    ResendOtpRequest,
    ResetPasswordRequest,
    SignupRequest,
    VerifyOtpRequest,
    user_out,
)
from academy.app_shell.rate_limit import RateLimiter
from academy.components.auth import (
    AuthService,
    AuthSession,
    ResetPasswordInput,
    SignupInput,
    VerifyOtpInput,
)
from academy.domain.entities import User
from academy.rules.models import Rules

router = APIRouter()


def _too_many(retry_after: int) -> ApiError:
    return ApiError(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many attempts, please try again later",
        headers={"Retry-After": str(retry_after)},
    )


def _session_response(session: AuthSession, rules: Rules, message: str) -> JSONResponse:
    """Token pair in the body and as HttpOnly cookies."""
    resp = ok(
        {
            "user": user_out(session.user),
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "token_type": "bearer",
        },
        message,
    )
    cookie = rules.auth.cookie
    access_age = rules.auth.tokens.access_ttl_minutes * 60
    refresh_age = rules.auth.tokens.refresh_ttl_days * 24 * 60 * 60
    resp.set_cookie(
        key="access_token",
        value=f"Bearer {session.access_token}",
        httponly=True,
        max_age=access_age,
        expires=access_age,
        samesite=cookie.same_site,  # type: ignore[arg-type]
        secure=cookie.secure,
    )
    resp.set_cookie(
        key="refresh_token",
        value=session.refresh_token,
        httponly=True,
        max_age=refresh_age,
        expires=refresh_age,
        samesite=cookie.same_site,  # type: ignore[arg-type]
        secure=cookie.secure,
        path="/api/auth",
    )
    return resp


@router.post("/signup")
def signup(
    req: SignupRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JSONResponse:
    """Create an unverified account and email a verification code."""
    if req.email and not limiter.check_otp(req.email):
        raise _too_many(limiter.otp_retry_after(req.email))
    user, errors = service.signup(
        SignupInput(name=req.name, email=req.email, password=req.password, phone=req.phone)
    )
    raise_for_errors(errors)
    assert user is not None
    return ok(
        {"user": user_out(user)},
        "Registration successful. Please verify your email with the OTP sent.",
        status.HTTP_201_CREATED,
    )


@router.post("/verify-otp")
def verify_otp(
    req: VerifyOtpRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
    rules: Rules = Depends(get_rules),
) -> JSONResponse:
    if req.email and not limiter.check_otp(req.email):
        raise _too_many(limiter.otp_retry_after(req.email))
    session, errors = service.verify_otp(
        VerifyOtpInput(email=req.email, otp=req.otp, purpose=req.purpose)
    )
    raise_for_errors(errors)
    assert session is not None
    if req.purpose == "PASSWORD_RESET":
        return ok(None, "OTP verified")
    return _session_response(session, rules, "Email verified successfully")


@router.post("/resend-otp")
def resend_otp(
    req: ResendOtpRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JSONResponse:
    if not limiter.check_otp(req.email):
        raise _too_many(limiter.otp_retry_after(req.email))
    raise_for_errors(service.resend_otp(req.email, req.purpose))
    return ok(None, "OTP sent successfully")


@router.post("/login")
def login(
    req: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
    rules: Rules = Depends(get_rules),
) -> JSONResponse:
    if not limiter.check_login(client_ip(request)):
        raise _too_many(limiter.login_retry_after(client_ip(request)))
    session, errors = service.login(req.email, req.password)
    raise_for_errors(errors)
    assert session is not None
    return _session_response(session, rules, "Login successful")


@router.post("/refresh")
def refresh(
    request: Request,
    req: RefreshRequest | None = None,
    service: AuthService = Depends(get_auth_service),
    rules: Rules = Depends(get_rules),
) -> JSONResponse:
    token = (req.refresh_token if req else None) or request.cookies.get("refresh_token")
    session, errors = service.refresh(token)
    raise_for_errors(errors)
    assert session is not None
    return _session_response(session, rules, "Token refreshed")


@router.post("/logout")
def logout() -> JSONResponse:
    """Log out user by clearing cookies."""
    resp = ok(None, "Logged out successfully")
    resp.delete_cookie(key="access_token")
    resp.delete_cookie(key="refresh_token", path="/api/auth")
    return resp


@router.post("/forgot-password")
def forgot_password(
    req: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JSONResponse:
    if req.email and not limiter.check_otp(req.email):
        raise _too_many(limiter.otp_retry_after(req.email))
    return ok(None, service.forgot_password(req.email))


@router.post("/reset-password")
def reset_password(
    req: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JSONResponse:
    if req.email and not limiter.check_otp(req.email):
        raise _too_many(limiter.otp_retry_after(req.email))
    raise_for_errors(
        service.reset_password(
            ResetPasswordInput(email=req.email, otp=req.otp, new_password=req.new_password)
        )
    )
    return ok(None, "Password reset successfully")


@router.get("/me")
def read_users_me(current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Get current user info."""
    return ok(user_out(current_user))


@router.put("/profile")
def update_profile(
    req: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    user, errors = service.update_profile(current_user, name=req.name, phone=req.phone)
    raise_for_errors(errors)
    assert user is not None
    return ok(user_out(user), "Profile updated")


@router.put("/change-password")
def change_password(
    req: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    raise_for_errors(service.change_password(current_user, req.current_password, req.new_password))
    return ok(None, "Password changed successfully")
