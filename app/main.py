import importlib
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from app.config import Settings, settings as default_settings
from app.db.session import Database
from app.exceptions import register_exception_handlers
from app.logging_setup import TRACE_ID_CTX, setup_logging
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# modules mounted as routers under /<name>
MODULES = [
    "auth",
    "bookings",
]


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None, notifications: Optional[NotificationService] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s starting (env=%s)", settings.APP_NAME, settings.ENVIRONMENT)
        yield
        await app.state.db.dispose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    # shared for the life of the process, reached through dependencies
    app.state.settings = settings
    app.state.db = database or Database.from_settings(settings)
    app.state.notifications = notifications or NotificationService.from_settings(settings)

    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT)
        app.add_middleware(SentryAsgiMiddleware)

    register_exception_handlers(app)

    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):
        trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
        token = TRACE_ID_CTX.set(trace_id)
        try:
            response = await call_next(request)
        finally:
            TRACE_ID_CTX.reset(token)
        response.headers["X-Trace-Id"] = trace_id
        return response

    for mod in MODULES:
        pkg = importlib.import_module(f"app.modules.{mod}.router")
        app.include_router(pkg.router, prefix=f"/{mod}")

    @app.get("/")
    async def root():
        return {"app": settings.APP_NAME, "status": "ok"}

    @app.get("/metrics")
    async def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/ready")
    async def ready(request: Request):
        try:
            await request.app.state.db.ping()
        except Exception:
            logger.warning("Readiness check failed: database unreachable", exc_info=True)
            return Response(status_code=503, content="database unavailable")
        return {"status": "ready"}

    return app


app = create_app()
