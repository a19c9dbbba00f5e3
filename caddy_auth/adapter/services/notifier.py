"""
Notifier implementations.

SmtpNotifier delivers through an SMTP relay using the SMTP settings from
ApplicationConfig. LoggingNotifier is used when EMAIL_ENABLED is off and
only records that a message would have been sent.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from caddy_auth.app.services.notifier import INotifier, NotifierError

logger = logging.getLogger(__name__)


class SmtpNotifier(INotifier):
    """Send plain-text email over SMTP (blocking client run in a worker thread)"""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        starttls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.ehlo()
            if self.starttls:
                server.starttls()
                server.ehlo()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, body: str) -> None:
        msg = self._build_message(to, subject, body)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotifierError(f"Failed to send email to {to}: {e}") from e
        logger.info("Email sent to %s: %s", to, subject)


class LoggingNotifier(INotifier):
    """Email disabled: log the envelope, drop the body"""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Email delivery disabled, not sending to %s: %s", to, subject)
