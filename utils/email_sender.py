"""
Outgoing email.

EmailSender is the seam the services depend on; SmtpEmailSender is the
production implementation. smtplib is blocking, so each send runs in a
worker thread to keep the event loop free.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

import config
from enums.email_template import EmailTemplate
from utils.localizator import Localizator


class EmailSender(Protocol):
    async def send_email(self, template: EmailTemplate, recipient: str, data: dict) -> None:
        ...


class SmtpEmailSender:

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        use_ssl: bool | None = None
    ):
        self.host = host if host is not None else config.SMTP_HOST
        self.port = port if port is not None else config.SMTP_PORT
        self.user = user if user is not None else config.SMTP_USER
        self.password = password if password is not None else config.SMTP_PASSWORD
        self.sender = sender if sender is not None else config.SMTP_SENDER
        self.use_ssl = use_ssl if use_ssl is not None else config.SMTP_USE_SSL

    def build_message(self, template: EmailTemplate, recipient: str, data: dict) -> EmailMessage:
        subject, body = Localizator.render_email(template.value, data)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = recipient
        message.set_content(body)
        return message

    def _send_blocking(self, message: EmailMessage) -> None:
        smtp_class = smtplib.SMTP_SSL if self.use_ssl else smtplib.SMTP
        with smtp_class(self.host, self.port, timeout=30) as smtp:
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send_email(self, template: EmailTemplate, recipient: str, data: dict) -> None:
        """
        Render and send a templated email.

        Raises:
            smtplib.SMTPException, OSError: On delivery failure
        """
        if not self.host:
            logging.warning(f"⚠️ SMTP_HOST not configured, skipping {template.value} email")
            return

        message = self.build_message(template, recipient, data)
        await asyncio.to_thread(self._send_blocking, message)
        logging.info(f"📧 Sent {template.value} email")
