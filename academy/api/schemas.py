from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from academy.components.catalog import PricedItem
from academy.domain.entities import Certificate, User

# --- Shared Types ---
OtpPurposeField = Literal["EMAIL_VERIFY", "PASSWORD_RESET"]
CartPayload = dict[str, list[Any]]


# --- Auth ---
class SignupRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    phone: str | None = None


class VerifyOtpRequest(BaseModel):
    email: str = ""
    otp: str = ""
    purpose: OtpPurposeField = "EMAIL_VERIFY"


class ResendOtpRequest(BaseModel):
    email: str = ""
    purpose: OtpPurposeField = "EMAIL_VERIFY"


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str = ""


class ResetPasswordRequest(BaseModel):
    email: str = ""
    otp: str = ""
    new_password: str = ""


class ChangePasswordRequest(BaseModel):
    current_password: str = ""
    new_password: str = ""


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    phone: str | None = None


class UserStatusRequest(BaseModel):
    is_active: bool


# --- Catalog ---
class CatalogItemCreateRequest(BaseModel):
    title: str = ""
    slug: str | None = None
    short_description: str = ""
    description: str = ""
    price: float = 0.0
    sale_price: float | None = None
    is_free: bool = False
    is_published: bool = False
    instructor_name: str | None = None
    image_path: str | None = None
    category: str | None = None
    badges: list[str] = []
    starts_at: datetime | None = None
    duration_minutes: int | None = None
    attributes: dict[str, Any] = {}


class CatalogItemUpdateRequest(BaseModel):
    title: str | None = None
    slug: str | None = None
    short_description: str | None = None
    description: str | None = None
    price: float | None = None
    sale_price: float | None = None
    is_free: bool | None = None
    is_published: bool | None = None
    instructor_name: str | None = None
    image_path: str | None = None
    category: str | None = None
    badges: list[str] | None = None
    starts_at: datetime | None = None
    duration_minutes: int | None = None
    attributes: dict[str, Any] | None = None


# --- Jobs ---
class JobCreateRequest(BaseModel):
    title: str = ""
    description: str = ""
    slug: str | None = None
    company_name: str = ""
    company_logo: str | None = None
    requirements: str | None = None
    location: str | None = None
    salary: str | None = None
    job_types: list[str] = []
    experience: str | None = None
    skills: list[str] = []
    apply_link: str | None = None
    allows_quick_apply: bool = False


class JobUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    slug: str | None = None
    company_name: str | None = None
    company_logo: str | None = None
    requirements: str | None = None
    location: str | None = None
    salary: str | None = None
    job_types: list[str] | None = None
    experience: str | None = None
    skills: list[str] | None = None
    apply_link: str | None = None
    allows_quick_apply: bool | None = None


class JobVerifyRequest(BaseModel):
    verify: bool = True


# --- Cart ---
class CartItemRequest(BaseModel):
    item_type: str = ""
    item_id: str = ""


class CartSyncRequest(BaseModel):
    cart: CartPayload = {}


# --- Coupons ---
class CouponValidateRequest(BaseModel):
    code: str = ""
    total_amount: float = Field(default=0.0, ge=0)
    applicable_to: str | None = None


class CouponCreateRequest(BaseModel):
    code: str = ""
    discount_type: str = "PERCENTAGE"
    discount_value: float = 0.0
    valid_from: datetime
    valid_until: datetime
    title: str | None = None
    description: str | None = None
    min_amount: float | None = None
    max_discount: float | None = None
    usage_limit: int | None = None
    applicable_to: str = "ALL"
    is_active: bool = True
    target_user_type: str = "ALL"
    target_user_ids: list[str] = []
    ready_to_show: bool = False


class CouponUpdateRequest(BaseModel):
    code: str | None = None
    discount_type: str | None = None
    discount_value: float | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    title: str | None = None
    description: str | None = None
    min_amount: float | None = None
    max_discount: float | None = None
    usage_limit: int | None = None
    applicable_to: str | None = None
    is_active: bool | None = None
    target_user_type: str | None = None
    target_user_ids: list[str] | None = None
    ready_to_show: bool | None = None


# --- Flash sales ---
class FlashSaleCreateRequest(BaseModel):
    item_type: str = ""
    reference_ids: list[str] = []
    title: str = ""
    subtitle: str | None = None
    discount_percent: int = 0
    theme: str = "default"
    bg_color: str = "#dc2626"
    text_color: str = "#ffffff"
    start_date: datetime
    end_date: datetime
    is_active: bool = True


class FlashSaleUpdateRequest(BaseModel):
    item_type: str | None = None
    reference_ids: list[str] | None = None
    title: str | None = None
    subtitle: str | None = None
    discount_percent: int | None = None
    theme: str | None = None
    bg_color: str | None = None
    text_color: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool | None = None


# --- Orders ---
class CheckoutRequest(BaseModel):
    items: CartPayload = {}
    coupon_code: str | None = None


class PaymentVerifyRequest(CheckoutRequest):
    razorpay_order_id: str = ""
    razorpay_payment_id: str = ""
    razorpay_signature: str = ""


# --- Courses ---
class SessionCreateRequest(BaseModel):
    title: str = ""
    description: str | None = None
    position: int | None = None
    is_published: bool = False


class SessionUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    position: int | None = None
    is_published: bool | None = None


class ChapterCreateRequest(BaseModel):
    title: str = ""
    video_url: str = ""
    slug: str | None = None
    video_duration: int = 0
    is_free_preview: bool = False
    is_published: bool = False
    position: int | None = None


class ChapterUpdateRequest(BaseModel):
    title: str | None = None
    slug: str | None = None
    video_url: str | None = None
    video_duration: int | None = None
    is_free_preview: bool | None = None
    is_published: bool | None = None
    position: int | None = None


class ChapterProgressRequest(BaseModel):
    progress: int = 0
    completed: bool = False


class ManualEnrollRequest(BaseModel):
    email: str = ""
    course_id: str = ""


# --- Subscriptions ---
class PlanCreateRequest(BaseModel):
    name: str = ""
    plan_type: str = ""
    price: float = 0.0
    sale_price: float | None = None
    features: list[str] = []
    is_active: bool = True


class PlanUpdateRequest(BaseModel):
    name: str | None = None
    plan_type: str | None = None
    price: float | None = None
    sale_price: float | None = None
    features: list[str] | None = None
    is_active: bool | None = None


class SubscriptionCreateRequest(BaseModel):
    plan_id: UUID
    trading_view_username: str = ""
    coupon_code: str | None = None


class SubscriptionVerifyRequest(BaseModel):
    razorpay_order_id: str = ""
    razorpay_payment_id: str = ""
    razorpay_signature: str = ""


class TradingViewUpdateRequest(BaseModel):
    trading_view_username: str = ""


class StatusRequest(BaseModel):
    status: str = ""


# --- Certificates ---
class CertificateIssueRequest(BaseModel):
    user_id: UUID
    item_type: str
    reference_id: str


class TemplateUpsertRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    issuer_name: str | None = None
    issuer_title: str | None = None
    footer_text: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None
    is_active: bool | None = None


# --- Enquiries ---
class ContactRequest(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    subject: str = ""
    message: str = ""


class DemoRequestRequest(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    course_id: str | None = None
    message: str | None = None


class PlacementRegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    country_code: str = "+91"
    whatsapp_number: str = ""
    course: str = ""
    notes: str | None = None


class PlacementVerifyRequest(BaseModel):
    registration_id: UUID
    otp: str = ""


# --- Response helpers ---
def user_out(user: User) -> dict[str, Any]:
    return user.model_dump(mode="json", exclude={"password_hash"})


def priced_out(priced: PricedItem) -> dict[str, Any]:
    data = priced.item.model_dump(mode="json")
    data["pricing"] = priced.pricing.as_dict()
    return data


def certificate_out(cert: Certificate) -> dict[str, Any]:
    return cert.model_dump(mode="json", exclude={"file_path"})


def set_fields(model: BaseModel) -> dict[str, Any]:
    """Fields the client actually sent, for partial updates."""
    return model.model_dump(exclude_unset=True)
