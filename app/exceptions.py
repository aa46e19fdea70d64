"""Service error taxonomy and the handlers that turn it into JSON responses."""

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    title = "Internal error"

    def __init__(self, detail: Optional[str] = None, **extra: Any):
        self.detail = detail or self.title
        self.extra = extra
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        body = {"success": False, "error": self.title, "detail": self.detail}
        body.update(self.extra)
        return body


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    title = "Validation failed"

    def __init__(self, errors: Dict[str, str], detail: Optional[str] = None):
        self.errors = errors
        if detail is None:
            detail = "Invalid or missing fields: " + ", ".join(sorted(errors))
        super().__init__(detail, errors=errors)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    title = "Not found"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    title = "Invalid credentials"


class InvalidCode(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    title = "Invalid verification code"


class DependencyUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    title = "Service unavailable"


class NotificationFailed(DependencyUnavailable):
    title = "Notification failed"


class InternalError(ServiceError):
    title = "Internal error"

    def __init__(self, detail: Optional[str] = None, error_id: Optional[str] = None):
        super().__init__(detail, errorId=error_id or uuid.uuid4().hex)


class LoginRequired(Exception):
    """Raised by the route guard when a protected path has no valid session."""

    def __init__(self, login_path: str):
        self.login_path = login_path
        super().__init__(login_path)


def _field_path(loc) -> str:
    # drop the leading "body"/"query" segment FastAPI prepends
    parts = [str(p) for p in loc if p not in ("body", "query")]
    return ".".join(parts) or "body"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.title, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {_field_path(err["loc"]): err["msg"] for err in exc.errors()}
    return await service_error_handler(request, ValidationError(errors))


async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    return RedirectResponse(url=exc.login_path, status_code=status.HTTP_303_SEE_OTHER)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = InternalError("An unexpected error occurred")
    logger.exception("Unhandled error on %s %s (error_id=%s)", request.method, request.url.path, error.extra["errorId"])
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_exception_handlers(app) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
