"""
Enquiries component - Contact form, demo requests, placement training.
"""

from .component import ContactService, DemoRequestService, PlacementService, hash_code
from .models import (
    DEMO_STATUSES,
    OTP_EXPIRED_MESSAGE,
    OTP_INVALID_MESSAGE,
    ContactInput,
    DemoRequestInput,
    EnquiryError,
    PlacementInput,
)
from .ports import ContactRepoPort, DemoRequestRepoPort, PlacementRepoPort

__all__ = [
    "ContactService",
    "DemoRequestService",
    "PlacementService",
    "hash_code",
    "DEMO_STATUSES",
    "OTP_EXPIRED_MESSAGE",
    "OTP_INVALID_MESSAGE",
    "ContactInput",
    "DemoRequestInput",
    "EnquiryError",
    "PlacementInput",
    "ContactRepoPort",
    "DemoRequestRepoPort",
    "PlacementRepoPort",
]
