"""
Certificates component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from academy.components.errors import ComponentError
from academy.domain.entities import Certificate

CertificateError = ComponentError

TYPE_LABELS = {
    "COURSE": "course",
    "WEBINAR": "webinar",
    "MENTORSHIP": "mentorship program",
    "GUIDANCE": "guidance program",
    "OFFLINE_BATCH": "offline batch",
    "BUNDLE": "bundle",
}


@dataclass(frozen=True)
class CertificateVerification:
    valid: bool
    certificate_no: str
    status: str | None = None
    recipient_name: str | None = None
    item_type: str | None = None
    title: str | None = None
    issued_at: datetime | None = None
    message: str = ""

    def as_dict(self) -> dict[str, object]:
        return {
            "valid": self.valid,
            "certificate_no": self.certificate_no,
            "status": self.status,
            "recipient_name": self.recipient_name,
            "item_type": self.item_type,
            "title": self.title,
            "issued_at": self.issued_at,
            "message": self.message,
        }


@dataclass(frozen=True)
class CertificateFile:
    certificate: Certificate
    filename: str
    data: bytes
