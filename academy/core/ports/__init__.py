# Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from academy.core.ports.email import (
    Attachment,
    EmailAddress,
    EmailMessage,
    EmailPort,
    EmailResult,
    EmailStatus,
    MailKind,
)
from academy.core.ports.payment import (
    GatewayOrder,
    GatewayRefund,
    PaymentGatewayError,
    PaymentGatewayPort,
    to_paise,
)
from academy.core.ports.renderer import CertificateLayout, CertificateRendererPort
from academy.core.ports.storage import FileStorePort
from academy.core.ports.time import ClockPort

__all__ = [
    # Email
    "Attachment",
    "EmailAddress",
    "EmailMessage",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
    "MailKind",
    # Payment
    "GatewayOrder",
    "GatewayRefund",
    "PaymentGatewayError",
    "PaymentGatewayPort",
    "to_paise",
    # Rendering / storage / time
    "CertificateLayout",
    "CertificateRendererPort",
    "FileStorePort",
    "ClockPort",
]
