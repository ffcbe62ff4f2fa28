from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


# --- Enums / Literals ---
RoleType = Literal["USER", "ADMIN"]
OtpPurpose = Literal["EMAIL_VERIFY", "PASSWORD_RESET"]
ItemType = Literal[
    "COURSE",
    "EBOOK",
    "WEBINAR",
    "GUIDANCE",
    "MENTORSHIP",
    "INDICATOR",
    "BUNDLE",
    "OFFLINE_BATCH",
]
ITEM_TYPES: tuple[str, ...] = (
    "COURSE",
    "EBOOK",
    "WEBINAR",
    "GUIDANCE",
    "MENTORSHIP",
    "INDICATOR",
    "BUNDLE",
    "OFFLINE_BATCH",
)
JobStatus = Literal["PENDING", "PUBLISHED", "REJECTED"]
DiscountType = Literal["PERCENTAGE", "FIXED"]
TargetUserType = Literal["ALL", "NEW_USER", "SPECIFIC_USER"]
OrderType = Literal["PURCHASE", "SUBSCRIPTION"]
OrderStatus = Literal["PENDING", "COMPLETED", "FAILED"]
PaymentStatus = Literal["UNPAID", "PAID", "FREE", "REFUNDED"]
PlanType = Literal["ONE_MONTH", "QUARTER", "SIX_MONTHS", "ONE_YEAR", "LIFETIME"]
SubscriptionStatus = Literal["PENDING", "ACTIVE", "CANCELLED", "EXPIRED"]
CertificateType = Literal["COURSE", "WEBINAR", "MENTORSHIP", "GUIDANCE", "OFFLINE_BATCH", "BUNDLE"]
CERTIFICATE_TYPES: tuple[str, ...] = (
    "COURSE",
    "WEBINAR",
    "MENTORSHIP",
    "GUIDANCE",
    "OFFLINE_BATCH",
    "BUNDLE",
)
CertificateStatus = Literal["GENERATED", "REVOKED"]
DemoRequestStatus = Literal["PENDING", "CONTACTED", "CONVERTED", "CANCELLED"]

# --- Users & Auth ---


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    password_hash: str
    phone: str | None = None
    role: RoleType = "USER"
    is_verified: bool = False
    is_active: bool = True
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


class OtpCode(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    code_hash: str
    purpose: OtpPurpose
    expires_at: datetime
    is_used: bool = False
    created_at: datetime = Field(default_factory=utc_now)


# --- Catalog ---


class CatalogItem(BaseModel):
    """A purchasable storefront item (course, e-book, webinar, ...)."""

    id: UUID = Field(default_factory=uuid4)
    item_type: ItemType
    slug: str
    title: str
    short_description: str = ""
    description: str = ""
    price: float = 0.0
    sale_price: float | None = None
    is_free: bool = False
    is_published: bool = False
    instructor_name: str | None = None
    image_path: str | None = None
    category: str | None = None
    badges: list[str] = Field(default_factory=list)
    starts_at: datetime | None = None
    duration_minutes: int | None = None
    # Type specific extras (e-book pages, webinar platform, batch venue...)
    attributes: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Job(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    slug: str
    company_name: str = ""
    company_logo: str | None = None
    description: str
    requirements: str | None = None
    location: str | None = None
    salary: str | None = None
    job_types: list[str] = Field(default_factory=list)
    experience: str | None = None
    skills: list[str] = Field(default_factory=list)
    apply_link: str | None = None
    allows_quick_apply: bool = False
    author_id: UUID | None = None
    status: JobStatus = "PENDING"
    is_verified: bool = False
    posted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# --- Commerce ---


class CartItem(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    item_type: str
    item_id: str
    created_at: datetime = Field(default_factory=utc_now)


class Coupon(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    code: str
    title: str | None = None
    description: str | None = None
    discount_type: DiscountType
    discount_value: float
    min_amount: float | None = None
    max_discount: float | None = None
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = None
    used_count: int = 0
    applicable_to: str = "ALL"
    is_active: bool = True
    target_user_type: TargetUserType = "ALL"
    target_user_ids: list[str] = Field(default_factory=list)
    ready_to_show: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class FlashSale(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    item_type: str
    reference_ids: list[str] = Field(default_factory=list)
    title: str
    subtitle: str | None = None
    discount_percent: int
    theme: str = "default"
    bg_color: str = "#dc2626"
    text_color: str = "#ffffff"
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def is_running(self, now: datetime) -> bool:
        return self.is_active and self.start_date <= now <= self.end_date


class OrderItem(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    item_type: str
    item_id: str
    title: str
    price: float


class Order(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    order_number: str
    user_id: UUID
    order_type: OrderType = "PURCHASE"
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: float
    discount_amount: float = 0.0
    final_amount: float
    status: OrderStatus = "PENDING"
    payment_status: PaymentStatus = "UNPAID"
    gateway_order_id: str | None = None
    payment_id: str | None = None
    signature: str | None = None
    coupon_code: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Enrollment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    item_type: str
    item_id: str
    order_id: UUID | None = None
    progress: int = 0
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)


class PaymentIntent(BaseModel):
    """What was quoted when a gateway order was opened; completion must match it."""

    gateway_order_id: str
    user_id: UUID
    amount_paise: int
    currency: str
    items: dict[str, list[str]] = Field(default_factory=dict)
    coupon_code: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


# --- Course curriculum ---


class CourseSession(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    course_id: str
    title: str
    description: str | None = None
    position: int = 0
    is_published: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class CourseChapter(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    session_id: UUID
    title: str
    slug: str
    video_url: str
    video_duration: int = 0
    is_free_preview: bool = False
    is_published: bool = False
    position: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ChapterProgress(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    chapter_id: UUID
    progress: int = 0
    completed: bool = False
    last_watched_at: datetime = Field(default_factory=utc_now)


# --- Subscriptions ---


class SubscriptionPlan(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    plan_type: PlanType
    price: float
    sale_price: float | None = None
    features: list[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Subscription(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    plan_id: UUID
    plan_type: PlanType
    trading_view_username: str
    status: SubscriptionStatus = "PENDING"
    start_date: datetime
    end_date: datetime | None = None
    total_amount: float = 0.0
    discount_amount: float = 0.0
    final_amount: float = 0.0
    coupon_code: str | None = None
    gateway_order_id: str | None = None
    payment_id: str | None = None
    signature: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def is_current(self, now: datetime) -> bool:
        return self.status == "ACTIVE" and (self.end_date is None or self.end_date >= now)


# --- Certificates ---


class CertificateTemplate(BaseModel):
    item_type: CertificateType
    name: str
    description: str | None = None
    issuer_name: str = "Shrestha Academy"
    issuer_title: str = "Platform Director"
    footer_text: str | None = None
    primary_color: str = "#6366F1"
    secondary_color: str = "#A5B4FC"
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Certificate(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    certificate_no: str
    user_id: UUID
    item_type: CertificateType
    reference_id: str
    recipient_name: str
    title: str
    file_path: str | None = None
    status: CertificateStatus = "GENERATED"
    issued_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# --- Enquiries ---


class Contact(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: str
    subject: str
    message: str
    is_read: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class DemoRequest(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: str
    course_id: str | None = None
    message: str | None = None
    user_id: UUID | None = None
    status: DemoRequestStatus = "PENDING"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class PlacementRegistration(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    country_code: str = "+91"
    whatsapp_number: str
    course: str
    notes: str | None = None
    source: str = "placement-training"
    otp_hash: str | None = None
    otp_expires_at: datetime | None = None
    is_verified: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
