from typing import Optional

from fastapi import Depends, Request
from jose import JWTError

from app.exceptions import LoginRequired
from app.services import auth as auth_service


def get_settings(request: Request):
    return request.app.state.settings


async def require_session(request: Request, settings=Depends(get_settings)) -> str:
    """Route guard for protected paths.

    Passes the request through with the session subject when the cookie holds
    a valid, unexpired token; otherwise redirects to the login page.
    """
    token: Optional[str] = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise LoginRequired(settings.LOGIN_PATH)
    try:
        return auth_service.verify_session_token(token, settings)
    except JWTError:
        raise LoginRequired(settings.LOGIN_PATH)
