import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict, Optional

from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

logger = logging.getLogger(__name__)


class NotificationProvider(ABC):
    """Abstract provider for notifications (email/sms)."""

    name = "abstract"

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict] = None) -> Dict:
        raise NotImplementedError()

    @abstractmethod
    async def send_sms(self, to: str, body: str, meta: Optional[Dict] = None) -> Dict:
        raise NotImplementedError()


class LogProvider(NotificationProvider):
    """Simple provider that logs messages (useful for dev/testing)."""

    name = "log"

    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict] = None) -> Dict:
        logger.info("[LogProvider] Sending email to %s subject=%s", to, subject)
        logger.debug("Email body: %s", body)
        return {"status": "sent", "provider": self.name}

    async def send_sms(self, to: str, body: str, meta: Optional[Dict] = None) -> Dict:
        logger.info("[LogProvider] Sending SMS to %s", to)
        logger.debug("SMS body: %s", body)
        return {"status": "sent", "provider": self.name}


class LiveProvider(NotificationProvider):
    """SMS through the Twilio REST API, email through SMTP.

    Both SDKs block, so each send runs in a worker thread with its own
    socket timeout.
    """

    name = "live"

    def __init__(self, settings):
        self.settings = settings
        self.timeout = settings.NOTIFICATION_TIMEOUT_SECONDS
        self.from_number = settings.TWILIO_PHONE_NUMBER
        self.client = None
        if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            self.client = Client(
                settings.TWILIO_ACCOUNT_SID,
                settings.TWILIO_AUTH_TOKEN,
                http_client=TwilioHttpClient(timeout=self.timeout),
            )
        else:
            logger.warning("Twilio credentials not configured; SMS sends will fail")

    async def send_sms(self, to: str, body: str, meta: Optional[Dict] = None) -> Dict:
        if self.client is None or not self.from_number:
            raise RuntimeError("Missing Twilio configuration")
        return await asyncio.to_thread(self._send_sms_sync, to, body)

    def _send_sms_sync(self, to: str, body: str) -> Dict:
        message = self.client.messages.create(body=body, to=to, from_=self.from_number)
        logger.info("SMS sent to %s, SID: %s", to, message.sid)
        return {"status": getattr(message, "status", "sent"), "provider": self.name, "sid": message.sid}

    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict] = None) -> Dict:
        return await asyncio.to_thread(self._send_email_sync, to, subject, body)

    def _send_email_sync(self, to: str, subject: str, body: str) -> Dict:
        s = self.settings
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = s.EMAIL_FROM
        msg["To"] = to
        msg.attach(MIMEText(body, "html"))
        with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=self.timeout) as server:
            if s.SMTP_USE_TLS:
                server.starttls()
            if s.SMTP_USERNAME:
                server.login(s.SMTP_USERNAME, s.SMTP_PASSWORD)
            server.sendmail(s.EMAIL_FROM, [to], msg.as_string())
        logger.info("Email sent to %s subject=%s", to, subject)
        return {"status": "sent", "provider": self.name}


def build_provider(settings) -> NotificationProvider:
    if settings.NOTIFICATION_PROVIDER == "live":
        return LiveProvider(settings)
    return LogProvider()
