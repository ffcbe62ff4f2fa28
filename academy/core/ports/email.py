"""
Email port.

Transactional mail only: OTP codes, enquiry acknowledgements, order,
subscription and certificate notices. Every message carries an HTML and a
plain-text body and a ``kind`` tag used for logging and test lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Protocol

MailKind = Literal[
    "OTP",
    "CONTACT",
    "DEMO",
    "PLACEMENT",
    "ORDER",
    "SUBSCRIPTION",
    "CERTIFICATE",
    "GENERAL",
]


class EmailStatus(Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class EmailAddress:
    email: str
    name: str | None = None

    def __str__(self) -> str:
        if not self.name:
            return self.email
        quoted = self.name.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{quoted}" <{self.email}>'


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


@dataclass(frozen=True)
class EmailMessage:
    recipient: EmailAddress
    subject: str
    body_html: str
    body_text: str
    kind: MailKind = "GENERAL"
    attachments: tuple[Attachment, ...] = ()
    sender: EmailAddress | None = None
    reply_to: EmailAddress | None = None

    def __post_init__(self) -> None:
        if not self.recipient.email or "@" not in self.recipient.email:
            raise ValueError("A recipient address is required")
        if not self.subject.strip():
            raise ValueError("Subject is required")
        if not (self.body_html or self.body_text):
            raise ValueError("Message body is empty")


@dataclass(frozen=True)
class EmailResult:
    status: EmailStatus
    recipient: str
    message_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """SKIPPED (dev delivery) counts as success."""
        return self.status is not EmailStatus.FAILED

    @classmethod
    def sent(cls, recipient: str, message_id: str) -> EmailResult:
        return cls(EmailStatus.SENT, recipient, message_id)

    @classmethod
    def skipped(cls, recipient: str, message_id: str, reason: str) -> EmailResult:
        return cls(EmailStatus.SKIPPED, recipient, message_id, reason)

    @classmethod
    def failed(cls, recipient: str, error: str) -> EmailResult:
        return cls(EmailStatus.FAILED, recipient, error=error)


class EmailPort(Protocol):
    def send(self, message: EmailMessage) -> EmailResult:
        """Deliver ``message``. Transport errors come back as FAILED, not raised."""
        ...
