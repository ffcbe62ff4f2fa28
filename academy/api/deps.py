import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from academy.adapters.auth.crypto import JWTAuthAdapter
from academy.adapters.clock import SystemClock
from academy.adapters.dev_email import DevEmailAdapter
from academy.adapters.fs.filestore import FileSystemStore
from academy.adapters.payment_stub import PaymentStubGateway
from academy.adapters.razorpay import RazorpayGateway
from academy.adapters.render.certificate_renderer import MatplotlibCertificateRenderer
from academy.adapters.smtp_email import SMTPEmailAdapter
from academy.adapters.sqlite.repos import (
    SQLiteCartRepo,
    SQLiteCatalogRepo,
    SQLiteCertificateRepo,
    SQLiteCertificateTemplateRepo,
    SQLiteChapterProgressRepo,
    SQLiteContactRepo,
    SQLiteCouponRepo,
    SQLiteCourseChapterRepo,
    SQLiteCourseSessionRepo,
    SQLiteDemoRequestRepo,
    SQLiteEnrollmentRepo,
    SQLiteFlashSaleRepo,
    SQLiteJobRepo,
    SQLiteOrderRepo,
    SQLiteOtpRepo,
    SQLitePaymentIntentRepo,
    SQLitePlacementRepo,
    SQLiteSubscriptionPlanRepo,
    SQLiteSubscriptionRepo,
    SQLiteUserRepo,
)
from academy.api.auth_utils import decode_access_token
from academy.app_shell.rate_limit import RateLimiter
from academy.components.auth import AuthService
from academy.components.cart import CartService
from academy.components.catalog import CatalogService
from academy.components.certificates import CertificateService
from academy.components.checkout import CheckoutService
from academy.components.coupons import CouponService
from academy.components.courses import CourseService
from academy.components.enquiries import ContactService, DemoRequestService, PlacementService
from academy.components.flash_sales import FlashSaleService
from academy.components.jobs import JobService
from academy.components.subscriptions import SubscriptionService
from academy.core.ports.email import EmailAddress, EmailPort
from academy.core.ports.payment import PaymentGatewayPort
from academy.core.services.notifier import Notifier
from academy.domain.entities import User
from academy.domain.pagination import Page, clamp_page
from academy.rules.loader import load_rules
from academy.rules.models import Rules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ACADEMY_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "academy.db")
        self.files_dir = self.data_dir / "files"
        self.rules_path = Path(
            os.environ.get("ACADEMY_RULES_PATH", str(self.base_dir / "academy_rules.yaml"))
        )
        self.migrations_dir = self.base_dir / "migrations"
        self.razorpay_key_id = os.environ.get("RAZORPAY_KEY_ID", "")
        self.razorpay_key_secret = os.environ.get("RAZORPAY_KEY_SECRET", "")
        self.admin_email = os.environ.get("ACADEMY_ADMIN_EMAIL") or None
        self.client_url = os.environ.get("ACADEMY_CLIENT_URL", "http://localhost:3000").rstrip("/")
        self.smtp_host = os.environ.get("ACADEMY_SMTP_HOST", "")
        self.smtp_port = int(os.environ.get("ACADEMY_SMTP_PORT", "587"))
        self.smtp_user = os.environ.get("ACADEMY_SMTP_USER") or None
        self.smtp_password = os.environ.get("ACADEMY_SMTP_PASSWORD") or None
        self.smtp_sender = os.environ.get("ACADEMY_SMTP_SENDER", "no-reply@shresthaacademy.com")
        self.cors_origins = [
            o.strip()
            for o in os.environ.get(
                "ACADEMY_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
            ).split(",")
            if o.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


def get_page(
    page: int | None = None,
    limit: int | None = None,
    rules: Rules = Depends(get_rules),
) -> Page:
    return clamp_page(page, limit, rules.catalog.default_page_size, rules.catalog.max_page_size)


# --- Singletons ---
_clock_instance: SystemClock | None = None
_email_instance: EmailPort | None = None
_gateway_instance: PaymentGatewayPort | None = None
_rate_limiter_instance: RateLimiter | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_email_adapter(settings: Settings = Depends(get_settings)) -> EmailPort:
    """SMTP when configured, otherwise the logging dev adapter."""
    global _email_instance
    if _email_instance is None:
        if settings.smtp_host:
            _email_instance = SMTPEmailAdapter(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_user,
                password=settings.smtp_password,
                default_sender=EmailAddress(email=settings.smtp_sender, name="Shrestha Academy"),
            )
        else:
            logger.info("SMTP not configured; using dev email adapter")
            _email_instance = DevEmailAdapter()
    return _email_instance


def get_payment_gateway(settings: Settings = Depends(get_settings)) -> PaymentGatewayPort:
    """Razorpay when keys are set, otherwise the in-process stub."""
    global _gateway_instance
    if _gateway_instance is None:
        if settings.razorpay_key_id and settings.razorpay_key_secret:
            _gateway_instance = RazorpayGateway(
                settings.razorpay_key_id, settings.razorpay_key_secret
            )
        else:
            logger.warning("Razorpay keys missing; using stub payment gateway")
            _gateway_instance = PaymentStubGateway()
    return _gateway_instance


def get_rate_limiter(rules: Rules = Depends(get_rules)) -> RateLimiter:
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        _rate_limiter_instance = RateLimiter(rules.rate_limits)
    return _rate_limiter_instance


def get_notifier(
    email: EmailPort = Depends(get_email_adapter),
    settings: Settings = Depends(get_settings),
) -> Notifier:
    return Notifier(email, admin_email=settings.admin_email)


def get_file_store(settings: Settings = Depends(get_settings)) -> FileSystemStore:
    return FileSystemStore(base_path=str(settings.files_dir))


def get_certificate_renderer() -> MatplotlibCertificateRenderer:
    return MatplotlibCertificateRenderer()


def get_auth_adapter(rules: Rules = Depends(get_rules)) -> JWTAuthAdapter:
    return JWTAuthAdapter(
        access_ttl_minutes=rules.auth.tokens.access_ttl_minutes,
        refresh_ttl_days=rules.auth.tokens.refresh_ttl_days,
    )


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_otp_repo(settings: Settings = Depends(get_settings)) -> SQLiteOtpRepo:
    return SQLiteOtpRepo(settings.db_path)


def get_catalog_repo(settings: Settings = Depends(get_settings)) -> SQLiteCatalogRepo:
    return SQLiteCatalogRepo(settings.db_path)


def get_job_repo(settings: Settings = Depends(get_settings)) -> SQLiteJobRepo:
    return SQLiteJobRepo(settings.db_path)


def get_cart_repo(settings: Settings = Depends(get_settings)) -> SQLiteCartRepo:
    return SQLiteCartRepo(settings.db_path)


def get_coupon_repo(settings: Settings = Depends(get_settings)) -> SQLiteCouponRepo:
    return SQLiteCouponRepo(settings.db_path)


def get_flash_sale_repo(settings: Settings = Depends(get_settings)) -> SQLiteFlashSaleRepo:
    return SQLiteFlashSaleRepo(settings.db_path)


def get_order_repo(settings: Settings = Depends(get_settings)) -> SQLiteOrderRepo:
    return SQLiteOrderRepo(settings.db_path)


def get_enrollment_repo(settings: Settings = Depends(get_settings)) -> SQLiteEnrollmentRepo:
    return SQLiteEnrollmentRepo(settings.db_path)


def get_payment_intent_repo(settings: Settings = Depends(get_settings)) -> SQLitePaymentIntentRepo:
    return SQLitePaymentIntentRepo(settings.db_path)


def get_session_repo(settings: Settings = Depends(get_settings)) -> SQLiteCourseSessionRepo:
    return SQLiteCourseSessionRepo(settings.db_path)


def get_chapter_repo(settings: Settings = Depends(get_settings)) -> SQLiteCourseChapterRepo:
    return SQLiteCourseChapterRepo(settings.db_path)


def get_chapter_progress_repo(
    settings: Settings = Depends(get_settings),
) -> SQLiteChapterProgressRepo:
    return SQLiteChapterProgressRepo(settings.db_path)


def get_plan_repo(settings: Settings = Depends(get_settings)) -> SQLiteSubscriptionPlanRepo:
    return SQLiteSubscriptionPlanRepo(settings.db_path)


def get_subscription_repo(settings: Settings = Depends(get_settings)) -> SQLiteSubscriptionRepo:
    return SQLiteSubscriptionRepo(settings.db_path)


def get_template_repo(
    settings: Settings = Depends(get_settings),
) -> SQLiteCertificateTemplateRepo:
    return SQLiteCertificateTemplateRepo(settings.db_path)


def get_certificate_repo(settings: Settings = Depends(get_settings)) -> SQLiteCertificateRepo:
    return SQLiteCertificateRepo(settings.db_path)


def get_contact_repo(settings: Settings = Depends(get_settings)) -> SQLiteContactRepo:
    return SQLiteContactRepo(settings.db_path)


def get_demo_request_repo(settings: Settings = Depends(get_settings)) -> SQLiteDemoRequestRepo:
    return SQLiteDemoRequestRepo(settings.db_path)


def get_placement_repo(settings: Settings = Depends(get_settings)) -> SQLitePlacementRepo:
    return SQLitePlacementRepo(settings.db_path)


# --- Component Services ---
def get_auth_service(
    users: SQLiteUserRepo = Depends(get_user_repo),
    otps: SQLiteOtpRepo = Depends(get_otp_repo),
    crypto: JWTAuthAdapter = Depends(get_auth_adapter),
    notifier: Notifier = Depends(get_notifier),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> AuthService:
    return AuthService(users, otps, crypto, notifier, clock, rules.auth)


def get_flash_sale_service(
    repo: SQLiteFlashSaleRepo = Depends(get_flash_sale_repo),
    catalog: SQLiteCatalogRepo = Depends(get_catalog_repo),
    clock: SystemClock = Depends(get_clock),
) -> FlashSaleService:
    return FlashSaleService(repo, catalog, clock)


def get_catalog_service(
    repo: SQLiteCatalogRepo = Depends(get_catalog_repo),
    sales: FlashSaleService = Depends(get_flash_sale_service),
    jobs: SQLiteJobRepo = Depends(get_job_repo),
    clock: SystemClock = Depends(get_clock),
) -> CatalogService:
    return CatalogService(repo, sales, jobs, clock)


def get_coupon_service(
    repo: SQLiteCouponRepo = Depends(get_coupon_repo),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> CouponService:
    return CouponService(repo, orders, clock, rules.coupons)


def get_cart_service(
    repo: SQLiteCartRepo = Depends(get_cart_repo),
    enrollments: SQLiteEnrollmentRepo = Depends(get_enrollment_repo),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> CartService:
    return CartService(repo, enrollments, clock, rules.checkout.cart_item_types)


def get_certificate_service(
    repo: SQLiteCertificateRepo = Depends(get_certificate_repo),
    templates: SQLiteCertificateTemplateRepo = Depends(get_template_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    items: SQLiteCatalogRepo = Depends(get_catalog_repo),
    enrollments: SQLiteEnrollmentRepo = Depends(get_enrollment_repo),
    renderer: MatplotlibCertificateRenderer = Depends(get_certificate_renderer),
    store: FileSystemStore = Depends(get_file_store),
    notifier: Notifier = Depends(get_notifier),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
    settings: Settings = Depends(get_settings),
) -> CertificateService:
    return CertificateService(
        repo,
        templates,
        users,
        items,
        enrollments,
        renderer,
        store,
        notifier,
        clock,
        rules.certificates,
        brand_name=rules.project.brand_name,
        verify_base_url=f"{settings.client_url}/certificates/verify",
    )


def get_checkout_service(
    items: SQLiteCatalogRepo = Depends(get_catalog_repo),
    sales: FlashSaleService = Depends(get_flash_sale_service),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    enrollments: SQLiteEnrollmentRepo = Depends(get_enrollment_repo),
    coupons: CouponService = Depends(get_coupon_service),
    cart: CartService = Depends(get_cart_service),
    gateway: PaymentGatewayPort = Depends(get_payment_gateway),
    intents: SQLitePaymentIntentRepo = Depends(get_payment_intent_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> CheckoutService:
    return CheckoutService(
        items,
        sales,
        orders,
        enrollments,
        coupons,
        cart,
        gateway,
        intents,
        notifier,
        clock,
        item_types=rules.checkout.cart_item_types,
        currency=rules.checkout.currency,
    )


def get_course_service(
    items: SQLiteCatalogRepo = Depends(get_catalog_repo),
    sessions: SQLiteCourseSessionRepo = Depends(get_session_repo),
    chapters: SQLiteCourseChapterRepo = Depends(get_chapter_repo),
    progress: SQLiteChapterProgressRepo = Depends(get_chapter_progress_repo),
    enrollments: SQLiteEnrollmentRepo = Depends(get_enrollment_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    certificates: CertificateService = Depends(get_certificate_service),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> CourseService:
    return CourseService(
        items, sessions, chapters, progress, enrollments, users, certificates, clock, rules.courses
    )


def get_subscription_service(
    plans: SQLiteSubscriptionPlanRepo = Depends(get_plan_repo),
    subscriptions: SQLiteSubscriptionRepo = Depends(get_subscription_repo),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    coupons: CouponService = Depends(get_coupon_service),
    gateway: PaymentGatewayPort = Depends(get_payment_gateway),
    notifier: Notifier = Depends(get_notifier),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> SubscriptionService:
    return SubscriptionService(
        plans, subscriptions, orders, coupons, gateway, notifier, clock, rules.checkout.currency
    )


def get_job_service(
    repo: SQLiteJobRepo = Depends(get_job_repo),
    clock: SystemClock = Depends(get_clock),
) -> JobService:
    return JobService(repo, clock)


def get_contact_service(
    repo: SQLiteContactRepo = Depends(get_contact_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: SystemClock = Depends(get_clock),
) -> ContactService:
    return ContactService(repo, notifier, clock)


def get_demo_request_service(
    repo: SQLiteDemoRequestRepo = Depends(get_demo_request_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: SystemClock = Depends(get_clock),
) -> DemoRequestService:
    return DemoRequestService(repo, notifier, clock)


def get_placement_service(
    repo: SQLitePlacementRepo = Depends(get_placement_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> PlacementService:
    return PlacementService(
        repo, notifier, clock, rules.auth.otp.length, rules.auth.otp.ttl_minutes
    )


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _token_from(request: Request, header_token: str | None) -> str | None:
    # HttpOnly cookie first, then the Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        return cookie_token.split(" ", 1)[1]
    return header_token


def _resolve_user(token: str | None, user_repo: SQLiteUserRepo) -> User | None:
    if not token:
        return None
    payload = decode_access_token(token)
    user_id = payload.get("sub") if payload else None
    if not isinstance(user_id, str):
        return None
    try:
        return user_repo.get_by_id(UUID(user_id))
    except ValueError:
        return None


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User:
    token = _token_from(request, token)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _resolve_user(token, user_repo)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated",
        )

    return user


async def get_optional_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User | None:
    user = _resolve_user(_token_from(request, token), user_repo)
    return user if user and user.is_active else None


async def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
