from __future__ import annotations

import logging

from academy.core.ports.email import EmailMessage, EmailPort, EmailResult

logger = logging.getLogger(__name__)


class Notifier:
    """
    Sends transactional mail on behalf of components.

    A failed send is logged and reported through the return value only;
    it never fails the request that triggered it.
    """

    def __init__(self, email: EmailPort, admin_email: str | None = None) -> None:
        self._email = email
        self.admin_email = admin_email

    def send(self, message: EmailMessage) -> bool:
        try:
            result: EmailResult = self._email.send(message)
        except Exception:
            logger.exception("%s email to %s raised", message.kind, message.recipient.email)
            return False
        if not result.ok:
            logger.warning("%s email to %s failed: %s", message.kind, result.recipient, result.error)
            return False
        return True
