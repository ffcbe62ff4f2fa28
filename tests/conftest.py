import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from academy.adapters.auth.crypto import JWTAuthAdapter
from academy.adapters.clock import FixedClock
from academy.adapters.dev_email import DevEmailAdapter
from academy.adapters.fs.filestore import FileSystemStore
from academy.adapters.payment_stub import PaymentStubGateway
from academy.adapters.sqlite.migrator import SQLiteMigrator
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
from academy.api.deps import (
    Settings,
    get_certificate_renderer,
    get_email_adapter,
    get_payment_gateway,
    get_rate_limiter,
    get_rules,
    get_settings,
)
from academy.api.main import app
from academy.app_shell.rate_limit import RateLimiter
from academy.components.auth import AuthService
from academy.components.cart import CartService
from academy.components.catalog import CatalogItemInput, CatalogService
from academy.components.certificates import CertificateService
from academy.components.checkout import CheckoutService
from academy.components.coupons import CouponService
from academy.components.courses import CourseService
from academy.components.enquiries import ContactService, DemoRequestService, PlacementService
from academy.components.flash_sales import FlashSaleService
from academy.components.jobs import JobService
from academy.components.subscriptions import SubscriptionService
from academy.core.ports.renderer import CertificateLayout
from academy.core.services.notifier import Notifier
from academy.domain.entities import CatalogItem, User
from academy.rules.loader import load_rules
from academy.rules.models import Rules

ROOT = Path(__file__).resolve().parent.parent
NOW = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)
PASSWORD = "secret123"


class FakeRenderer:
    """Records layouts instead of drawing them."""

    def __init__(self) -> None:
        self.layouts: list[CertificateLayout] = []

    def render_pdf(self, layout: CertificateLayout) -> bytes:
        self.layouts.append(layout)
        return f"%PDF-fake {layout.certificate_no}".encode()


@dataclass
class Services:
    db_path: str
    rules: Rules
    clock: FixedClock
    email: DevEmailAdapter
    gateway: PaymentStubGateway
    renderer: FakeRenderer
    store: FileSystemStore
    users: SQLiteUserRepo
    catalog_repo: SQLiteCatalogRepo
    auth: AuthService
    flash_sales: FlashSaleService
    catalog: CatalogService
    coupons: CouponService
    cart: CartService
    certificates: CertificateService
    checkout: CheckoutService
    courses: CourseService
    subscriptions: SubscriptionService
    jobs: JobService
    contacts: ContactService
    demos: DemoRequestService
    placements: PlacementService


@pytest.fixture
def rules() -> Rules:
    return load_rules(ROOT / "academy_rules.yaml")


@pytest.fixture
def db_path(tmp_path) -> str:
    path = os.path.join(str(tmp_path), "academy.db")
    SQLiteMigrator(path, str(ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def services(db_path, rules, clock, tmp_path) -> Services:
    """
    Every service wired to a migrated temporary database, with the dev
    email adapter, the stub gateway and a fake certificate renderer.
    """
    email = DevEmailAdapter()
    gateway = PaymentStubGateway()
    renderer = FakeRenderer()
    store = FileSystemStore(base_path=str(tmp_path / "files"))
    notifier = Notifier(email, admin_email="admin@academy.test")

    users = SQLiteUserRepo(db_path)
    catalog_repo = SQLiteCatalogRepo(db_path)
    orders = SQLiteOrderRepo(db_path)
    enrollments = SQLiteEnrollmentRepo(db_path)
    jobs_repo = SQLiteJobRepo(db_path)

    auth = AuthService(
        users,
        SQLiteOtpRepo(db_path),
        JWTAuthAdapter(
            access_ttl_minutes=rules.auth.tokens.access_ttl_minutes,
            refresh_ttl_days=rules.auth.tokens.refresh_ttl_days,
        ),
        notifier,
        clock,
        rules.auth,
    )
    flash_sales = FlashSaleService(SQLiteFlashSaleRepo(db_path), catalog_repo, clock)
    catalog = CatalogService(catalog_repo, flash_sales, jobs_repo, clock)
    coupons = CouponService(SQLiteCouponRepo(db_path), orders, clock, rules.coupons)
    cart = CartService(SQLiteCartRepo(db_path), enrollments, clock, rules.checkout.cart_item_types)
    certificates = CertificateService(
        SQLiteCertificateRepo(db_path),
        SQLiteCertificateTemplateRepo(db_path),
        users,
        catalog_repo,
        enrollments,
        renderer,
        store,
        notifier,
        clock,
        rules.certificates,
        brand_name=rules.project.brand_name,
        verify_base_url="https://academy.test/certificates/verify",
    )
    checkout = CheckoutService(
        catalog_repo,
        flash_sales,
        orders,
        enrollments,
        coupons,
        cart,
        gateway,
        SQLitePaymentIntentRepo(db_path),
        notifier,
        clock,
        item_types=rules.checkout.cart_item_types,
        currency=rules.checkout.currency,
    )
    subscriptions = SubscriptionService(
        SQLiteSubscriptionPlanRepo(db_path),
        SQLiteSubscriptionRepo(db_path),
        orders,
        coupons,
        gateway,
        notifier,
        clock,
        rules.checkout.currency,
    )
    return Services(
        db_path=db_path,
        rules=rules,
        clock=clock,
        email=email,
        gateway=gateway,
        renderer=renderer,
        store=store,
        users=users,
        catalog_repo=catalog_repo,
        auth=auth,
        flash_sales=flash_sales,
        catalog=catalog,
        coupons=coupons,
        cart=cart,
        certificates=certificates,
        checkout=checkout,
        courses=CourseService(
            catalog_repo,
            SQLiteCourseSessionRepo(db_path),
            SQLiteCourseChapterRepo(db_path),
            SQLiteChapterProgressRepo(db_path),
            enrollments,
            users,
            certificates,
            clock,
            rules.courses,
        ),
        subscriptions=subscriptions,
        jobs=JobService(jobs_repo, clock),
        contacts=ContactService(SQLiteContactRepo(db_path), notifier, clock),
        demos=DemoRequestService(SQLiteDemoRequestRepo(db_path), notifier, clock),
        placements=PlacementService(
            SQLitePlacementRepo(db_path),
            notifier,
            clock,
            rules.auth.otp.length,
            rules.auth.otp.ttl_minutes,
        ),
    )


# --- Factories ---


def make_user(services: Services, email: str = "student@example.com", admin: bool = False) -> User:
    """A verified account, created the way the CLI creates admins."""
    user, errors = services.auth.create_admin("Test User", email, PASSWORD)
    assert not errors and user is not None
    if not admin:
        user.role = "USER"
        services.users.save(user)
    return user


def make_item(services: Services, item_type: str = "COURSE", title: str = "Price Action Basics", **fields) -> CatalogItem:
    fields.setdefault("price", 1000.0)
    fields.setdefault("is_published", True)
    priced, errors = services.catalog.create(
        CatalogItemInput(item_type=item_type, title=title, **fields)
    )
    assert not errors and priced is not None
    return priced.item


@pytest.fixture
def student(services) -> User:
    return make_user(services)


@pytest.fixture
def admin(services) -> User:
    return make_user(services, "admin@example.com", admin=True)


@pytest.fixture
def new_user(services):
    def _make(email: str = "someone@example.com", admin: bool = False) -> User:
        return make_user(services, email, admin)

    return _make


@pytest.fixture
def new_item(services):
    def _make(item_type: str = "COURSE", title: str = "Price Action Basics", **fields) -> CatalogItem:
        return make_item(services, item_type, title, **fields)

    return _make


# --- API ---


@dataclass
class Api:
    client: TestClient
    services: Services

    def headers(self, user: User) -> dict[str, str]:
        token = JWTAuthAdapter().create_access_token(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api(services, rules, tmp_path):
    """
    TestClient over the real app, pointed at the same temporary database
    and fakes as ``services``. Lifespan is not run; the schema is already
    migrated.
    """
    settings = Settings()
    settings.data_dir = tmp_path / "data"
    settings.db_path = services.db_path
    settings.files_dir = tmp_path / "files"
    settings.rules_path = ROOT / "academy_rules.yaml"
    settings.migrations_dir = ROOT / "migrations"
    settings.admin_email = "admin@academy.test"
    settings.client_url = "https://academy.test"
    limiter = RateLimiter(rules.rate_limits)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_email_adapter] = lambda: services.email
    app.dependency_overrides[get_payment_gateway] = lambda: services.gateway
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_certificate_renderer] = lambda: services.renderer
    yield Api(client=TestClient(app), services=services)
    app.dependency_overrides.clear()
