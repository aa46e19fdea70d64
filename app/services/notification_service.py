import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from app.exceptions import NotificationFailed
from app.metrics import NOTIF_COUNTER_FAILED, NOTIF_COUNTER_SENT
from app.services.notification_providers import LogProvider, NotificationProvider, build_provider

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "notifications" / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class NotificationService:
    def __init__(self, provider: Optional[NotificationProvider] = None, timeout: float = 10.0, admin_phone: str = ""):
        self.provider = provider or LogProvider()
        self.timeout = timeout
        self.admin_phone = admin_phone

    @classmethod
    def from_settings(cls, settings, provider: Optional[NotificationProvider] = None) -> "NotificationService":
        return cls(
            provider=provider or build_provider(settings),
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
            admin_phone=settings.ADMIN_PHONE_NUMBER,
        )

    def render(self, template_name: str, locale: str = "en", context: Dict = None) -> str:
        ctx = context or {}
        # try locale-specific template, fallback to en
        for tpl in (f"{locale}/{template_name}", f"en/{template_name}"):
            try:
                return _env.get_template(tpl).render(**ctx)
            except TemplateNotFound:
                continue
        raise RuntimeError("Template not found: %s" % template_name)

    def _render_or_fail(self, template_name: str, locale: str, context: Optional[Dict]) -> str:
        try:
            return self.render(template_name, locale=locale, context=context)
        except Exception as exc:
            logger.exception("Rendering %s failed", template_name)
            raise NotificationFailed(f"could not render {template_name}") from exc

    async def _deliver(self, channel: str, send, to: str):
        provider_name = getattr(self.provider, "name", self.provider.__class__.__name__)
        try:
            res = await asyncio.wait_for(send, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            NOTIF_COUNTER_FAILED.labels(channel=channel, provider=provider_name).inc()
            logger.error("%s to %s timed out after %ss", channel, to, self.timeout)
            raise NotificationFailed(f"{channel} provider timed out after {self.timeout}s") from exc
        except Exception as exc:
            NOTIF_COUNTER_FAILED.labels(channel=channel, provider=provider_name).inc()
            logger.exception("%s send to %s failed", channel, to)
            raise NotificationFailed(f"{channel} send failed: {exc}") from exc
        NOTIF_COUNTER_SENT.labels(channel=channel, provider=provider_name).inc()
        return res

    async def send_email(self, to: str, subject: str, template_name: str, context: Dict = None, locale: str = "en", meta: Dict = None):
        body = self._render_or_fail(template_name, locale, context)
        return await self._deliver("email", self.provider.send_email(to=to, subject=subject, body=body, meta=meta), to)

    async def send_sms(self, to: str, template_name: str, context: Dict = None, locale: str = "en", meta: Dict = None):
        body = self._render_or_fail(template_name, locale, context)
        return await self._deliver("sms", self.provider.send_sms(to=to, body=body, meta=meta), to)

    async def send_booking_notification(self, booking):
        """Text the dispatcher a summary of a new booking."""
        if not self.admin_phone:
            NOTIF_COUNTER_FAILED.labels(channel="sms", provider=self.provider.name).inc()
            logger.error("Booking %s not sent: ADMIN_PHONE_NUMBER is not configured", booking.id)
            raise NotificationFailed("ADMIN_PHONE_NUMBER is not configured")
        return await self.send_sms(
            to=self.admin_phone,
            template_name="booking_created.txt",
            context={"booking": booking},
            meta={"booking_id": booking.id},
        )

    async def send_password_reset_code(self, user, code: str, ttl_minutes: int = 15):
        return await self.send_email(
            to=user.email,
            subject="Password Reset Verification Code",
            template_name="password_reset.html",
            context={"code": code, "username": user.username, "ttl_minutes": ttl_minutes},
        )
