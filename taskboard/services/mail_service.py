"""
Taskboard API: Outbound Mail
=============================

What:  Abstract mail interface plus the SMTP and log-only implementations.
How:   Concrete services implement send(). SMTP delivery is blocking, so it
       runs in a worker thread via asyncio.to_thread.
Who:   AuthService.forgot_password (password-reset links).

Implementations:
    - SMTPMailService:    real delivery through settings.smtp_host
    - LoggingMailService: selected when smtp_host is empty (local dev);
                          logs the recipient and subject, never the body,
                          because the body carries a live reset token
    - tests substitute an in-memory fake through the get_mail_service
      dependency override
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Optional

from taskboard.config import settings
from taskboard.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)


class MailService(ABC):
    """
    Contract:
        - send() delivers one HTML message to one recipient
        - any transport failure surfaces as MailDeliveryError (→ 503)
    """

    @abstractmethod
    async def send(self, to: str, subject: str, html: str) -> None:
        ...


class SMTPMailService(MailService):
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port) as client:
            if self.use_tls:
                client.starttls()
            if self.username:
                client.login(self.username, self.password or "")
            client.send_message(message)

    async def send(self, to: str, subject: str, html: str) -> None:
        message = self._build_message(to, subject, html)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", to, str(e))
            raise MailDeliveryError(context={"error_type": type(e).__name__})
        logger.info("Mail sent to %s: %s", to, subject)


class LoggingMailService(MailService):
    async def send(self, to: str, subject: str, html: str) -> None:
        logger.warning("SMTP not configured; mail to %s (%s) was not delivered", to, subject)


def build_mail_service() -> MailService:
    """Pick the implementation from settings."""
    if not settings.smtp_host:
        return LoggingMailService()
    return SMTPMailService(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.mail_sender,
        username=settings.smtp_username or None,
        password=settings.smtp_password or None,
        use_tls=settings.smtp_use_tls,
    )


mail_service = build_mail_service()


def get_mail_service() -> MailService:
    """FastAPI dependency; overridden in tests."""
    return mail_service
