"""
Dev email adapter.

Nothing leaves the process: messages are logged and kept in an in-memory
outbox, which tests read to pick up OTP codes and notifications.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import count

from academy.core.ports.email import EmailMessage, EmailResult, MailKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentEmail:
    id: str
    message: EmailMessage
    logged_at: datetime

    @property
    def recipient(self) -> str:
        return self.message.recipient.email

    @property
    def subject(self) -> str:
        return self.message.subject

    @property
    def body_text(self) -> str:
        return self.message.body_text

    @property
    def body_html(self) -> str:
        return self.message.body_html

    @property
    def attachment_names(self) -> list[str]:
        return [a.filename for a in self.message.attachments]


@dataclass
class DevEmailAdapter:
    sent_emails: list[SentEmail] = field(default_factory=list)
    preview_chars: int = 80
    _ids: count = field(default_factory=lambda: count(1), repr=False)

    def send(self, message: EmailMessage) -> EmailResult:
        message_id = f"dev-{next(self._ids):05d}"
        self.sent_emails.append(SentEmail(message_id, message, datetime.now(UTC)))

        preview = " ".join(message.body_text.split())[: self.preview_chars]
        logger.info(
            "[dev mail %s] %s -> %s: %s | %s%s",
            message_id,
            message.kind,
            message.recipient.email,
            message.subject,
            preview,
            f" (+{len(message.attachments)} attachment(s))" if message.attachments else "",
        )
        return EmailResult.skipped(message.recipient.email, message_id, "Logged by dev adapter")

    # --- Outbox queries ---

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        wanted = recipient.strip().lower()
        return [e for e in self.sent_emails if e.recipient.lower() == wanted]

    def of_kind(self, kind: MailKind) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.message.kind == kind]

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)
