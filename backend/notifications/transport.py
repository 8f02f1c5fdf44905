"""Mail transports.

``EmailPort`` is the interface the dispatcher depends on. ``SmtpEmailAdapter``
sends through an SMTP relay; ``FakeEmailAdapter`` (see ``fake_transport``)
records messages in memory.
"""
from __future__ import annotations

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import make_msgid

from .config import DEFAULT_EMAIL_CONFIG, EmailConfig

logger = logging.getLogger(__name__)


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        """Send an email message.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...


class SmtpEmailAdapter(EmailPort):
    def __init__(self, config: EmailConfig = DEFAULT_EMAIL_CONFIG) -> None:
        self.config = config

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        if not self.config.smtp_host:
            return {"message_id": None, "status": "failed", "error": "SMTP_HOST is not configured"}

        msg = EmailMessage()
        msg["From"] = f"{self.config.brand_name} <{self.config.sender}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(body)
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(
                self.config.smtp_host, self.config.smtp_port, timeout=self.config.send_timeout
            ) as smtp:
                if self.config.use_starttls:
                    smtp.starttls()
                if self.config.smtp_username:
                    smtp.login(self.config.smtp_username, self.config.smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP send to %s failed: %s", to, exc)
            return {"message_id": None, "status": "failed", "error": str(exc)}

        return {"message_id": msg["Message-ID"], "status": "sent"}
