from pydantic import BaseModel, Field, field_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    brand_name: str


class OtpRules(BaseModel):
    length: int = Field(ge=4, le=10)
    ttl_minutes: int = Field(gt=0)


class PasswordRules(BaseModel):
    min_length: int = Field(ge=6)
    require_letter: bool = True
    require_digit: bool = True


class TokenRules(BaseModel):
    access_ttl_minutes: int = Field(gt=0)
    refresh_ttl_days: int = Field(gt=0)


class CookieRules(BaseModel):
    secure: bool
    same_site: str


class AuthRules(BaseModel):
    otp: OtpRules
    password: PasswordRules
    tokens: TokenRules
    cookie: CookieRules


class WindowRule(BaseModel):
    window_seconds: int
    max_attempts: int | None = None
    max_requests: int | None = None


class RateLimitRules(BaseModel):
    login: WindowRule
    otp: WindowRule


class CatalogRules(BaseModel):
    default_page_size: int = Field(gt=0)
    max_page_size: int = Field(gt=0)
    search_limit_per_type: int = Field(gt=0)


class CheckoutRules(BaseModel):
    currency: str
    cart_item_types: list[str]

    @field_validator("cart_item_types")
    @classmethod
    def _non_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("cart_item_types must not be empty")
        return [t.upper() for t in v]


class CouponRules(BaseModel):
    ready_to_show_limit: int = Field(gt=0)


class CourseRules(BaseModel):
    chapter_complete_percent: int = Field(default=90, ge=1, le=100)


class CertificateRules(BaseModel):
    issuer_name: str
    issuer_title: str
    primary_color: str
    secondary_color: str
    storage_prefix: str


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    auth: AuthRules
    rate_limits: RateLimitRules
    catalog: CatalogRules
    checkout: CheckoutRules
    coupons: CouponRules
    certificates: CertificateRules
    courses: CourseRules = Field(default_factory=CourseRules)
    ops: OpsRules
