import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import unavailable_on_error
from app.exceptions import InvalidCode, InvalidCredentials, NotFoundError, NotificationFailed
from app.metrics import LOGINS
from app.models.models import User
from app.services import auth as auth_service
from app.services.audit import log_audit

logger = logging.getLogger(__name__)

ADMIN_SUBJECT = "admin"

_gateway_call = unavailable_on_error("Account database is unavailable")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def generate_reset_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


@dataclass
class ResetRequestResult:
    notification_error: Optional[str] = None


class AccountService:
    def __init__(self, db: AsyncSession, settings, notifications=None):
        self.db = db
        self.settings = settings
        self.notifications = notifications

    async def _get_user(self, username: str) -> Optional[User]:
        stmt = sa_select(User).where(User.username == username).execution_options(populate_existing=True)
        res = await self.db.execute(stmt)
        return res.scalars().first()

    def _check_admin_secret(self, password: str) -> bool:
        s = self.settings
        if s.ADMIN_PASSWORD_HASH:
            return auth_service.verify_password(password, s.ADMIN_PASSWORD_HASH)
        if s.ADMIN_PASSWORD:
            return auth_service.secrets_match(password, s.ADMIN_PASSWORD)
        return False

    @_gateway_call
    async def authenticate(self, password: str, username: Optional[str] = None) -> str:
        """Check a credential and return a signed session token."""
        if username is not None:
            async with self.db.begin():
                user = await self._get_user(username)
            if user is None:
                # same bcrypt cost whether or not the account exists
                auth_service.pwd_context.dummy_verify()
                ok = False
            else:
                ok = auth_service.verify_password(password, user.hashed_password)
            subject = username
        else:
            ok = self._check_admin_secret(password)
            subject = ADMIN_SUBJECT
        if not ok:
            LOGINS.labels(result="failure").inc()
            logger.info("Failed login for %s", subject)
            raise InvalidCredentials("Invalid username or password" if username is not None else "Invalid password")
        LOGINS.labels(result="success").inc()
        return auth_service.create_session_token(subject, self.settings)

    @_gateway_call
    async def request_password_reset(self, username: str) -> ResetRequestResult:
        code = generate_reset_code()
        async with self.db.begin():
            user = await self._get_user(username)
            if user is None:
                raise NotFoundError("User not found")
            # a new request replaces any outstanding code
            user.reset_code = code
            user.reset_code_expires = _now() + timedelta(minutes=self.settings.RESET_CODE_TTL_MINUTES)
        logger.info("Password reset code issued for %s", username)

        result = ResetRequestResult()
        if self.notifications is not None:
            try:
                await self.notifications.send_password_reset_code(user, code, ttl_minutes=self.settings.RESET_CODE_TTL_MINUTES)
            except NotificationFailed as exc:
                logger.warning("Reset code for %s stored but email failed: %s", username, exc.detail)
                result.notification_error = exc.detail
        return result

    @_gateway_call
    async def confirm_password_reset(self, username: str, code: str, new_password: str) -> None:
        async with self.db.begin():
            user = await self._get_user(username)
            if user is None:
                raise NotFoundError("User not found")
            if not user.reset_code or not user.reset_code_expires:
                raise NotFoundError("No active reset code found")
            if not auth_service.secrets_match(code, user.reset_code):
                raise InvalidCode("Invalid verification code")
            if _now() > _as_utc(user.reset_code_expires):
                raise InvalidCode("Verification code has expired")
            user.hashed_password = auth_service.hash_password(new_password)
            user.reset_code = None
            user.reset_code_expires = None
            await log_audit(self.db, actor=username, action="reset_password", object_type="user", object_id=username)
        logger.info("Password reset completed for %s", username)

    @_gateway_call
    async def create_user(self, username: str, password: str, email: str, role: str = "admin") -> Optional[User]:
        """Create an account; returns None when the username is taken."""
        async with self.db.begin():
            if await self._get_user(username) is not None:
                return None
            user = User(username=username, email=email, hashed_password=auth_service.hash_password(password), role=role)
            self.db.add(user)
        return user
