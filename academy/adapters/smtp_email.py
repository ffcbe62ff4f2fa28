"""SMTP email adapter (production EmailPort)."""

from __future__ import annotations

import logging
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

from academy.core.ports.email import EmailAddress, EmailMessage, EmailResult

logger = logging.getLogger(__name__)


class SMTPEmailAdapter:
    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        default_sender: EmailAddress,
        use_tls: bool = True,
        timeout: float = 15.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.default_sender = default_sender
        self.use_tls = use_tls
        self.timeout = timeout

    def _build(self, message: EmailMessage, message_id: str) -> MIMEMultipart:
        """multipart/mixed: a text/html alternative part, then any attachments."""
        msg = MIMEMultipart("mixed")
        msg["Subject"] = message.subject
        msg["From"] = str(message.sender or self.default_sender)
        msg["To"] = str(message.recipient)
        msg["Message-ID"] = message_id
        if message.reply_to:
            msg["Reply-To"] = str(message.reply_to)
        msg["X-Academy-Mail-Kind"] = message.kind

        body = MIMEMultipart("alternative")
        if message.body_text:
            body.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            body.attach(MIMEText(message.body_html, "html", "utf-8"))
        msg.attach(body)

        for attachment in message.attachments:
            part = MIMEApplication(attachment.content, _subtype=attachment.mime_type.split("/")[-1])
            part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
            msg.attach(part)
        return msg

    def send(self, message: EmailMessage) -> EmailResult:
        recipient = message.recipient.email
        message_id = make_msgid(domain=self.default_sender.email.split("@")[-1])
        msg = self._build(message, message_id)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.default_sender.email, [recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP send to %s failed: %s", recipient, e)
            return EmailResult.failed(recipient, str(e))

        logger.info("%s email sent to %s (%s)", message.kind, recipient, message.subject)
        return EmailResult.sent(recipient, message_id)
