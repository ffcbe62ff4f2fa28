"""
Enquiries component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from academy.components.errors import ComponentError

EnquiryError = ComponentError

DEMO_STATUSES = ("PENDING", "CONTACTED", "CONVERTED", "CANCELLED")

OTP_EXPIRED_MESSAGE = "OTP expired. Please register again."
OTP_INVALID_MESSAGE = "Invalid OTP"


@dataclass(frozen=True)
class ContactInput:
    name: str
    email: str
    phone: str
    subject: str
    message: str


@dataclass(frozen=True)
class DemoRequestInput:
    name: str
    email: str
    phone: str
    course_id: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class PlacementInput:
    name: str
    email: str
    whatsapp_number: str
    course: str
    country_code: str = "+91"
    notes: str | None = None
