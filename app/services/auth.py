import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_TOKEN_TYPE = "session"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # malformed stored hash
        return False


def secrets_match(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_session_token(subject: str, settings, now: Optional[datetime] = None) -> str:
    expire = (now or _now()) + timedelta(hours=settings.SESSION_TTL_HOURS)
    payload = {"sub": subject, "type": SESSION_TOKEN_TYPE, "exp": int(expire.timestamp())}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_session_token(token: str, settings) -> str:
    """Return the session subject; raises ``JWTError`` when invalid or expired."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise JWTError("Invalid token type")
    subject = payload.get("sub")
    if not subject:
        raise JWTError("Token has no subject")
    return subject
