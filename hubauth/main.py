"""
Finance Hub auth FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hubauth import db
from hubauth.config import Settings
from hubauth.config import settings as default_settings
from hubauth.errors import AuthFlowError, InvalidRequestError, RateLimitedError
from hubauth.logging_config import configure_logging
from hubauth.middleware.rate_limit import RateLimiter
from hubauth.repos.registration_repo import RegistrationRepo, TokenStore
from hubauth.repos.user_repo import UserRepo
from hubauth.routes import auth_routes, notification_routes, registration_routes
from hubauth.services.email import Mailer, ResendMailer
from hubauth.services.identity import IdentityProvider, LocalIdentityProvider, UserProfiles
from hubauth.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)


async def cleanup_task(app: FastAPI, interval_seconds: int):
    """
    Periodically delete stale pending registrations, redeemed credentials
    past their expiry and old rate limit entries.

    Stands in for an external scheduler when the service runs long-lived.
    """
    service: RegistrationService = app.state.registration_service
    profiles: UserProfiles = app.state.profiles
    limiter: RateLimiter = app.state.rate_limiter

    while True:
        try:
            deleted_count = await service.cleanup_expired_registrations()
            if deleted_count > 0:
                logger.info("Cleaned up %d expired registrations", deleted_count)

            purged = await profiles.purge_used_credentials(datetime.now(UTC))
            if purged > 0:
                logger.info("Purged %d used sign-in credentials", purged)

            limiter.cleanup_old_entries(max_age_hours=2)
        except Exception:
            # Keep the loop alive; the next run retries.
            logger.exception("Error in cleanup task")

        await asyncio.sleep(interval_seconds)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."

    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if first.get("type") == "missing":
        return f"Missing required field: {field}" if field else "Missing request body"

    message = str(first.get("msg", "Invalid value")).removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthFlowError)
    async def auth_flow_error_handler(request: Request, exc: AuthFlowError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)

        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = InvalidRequestError(_validation_message(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_body())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=AuthFlowError().to_body())


def create_app(
    settings: Settings | None = None,
    *,
    store: TokenStore | None = None,
    identity: IdentityProvider | None = None,
    profiles: UserProfiles | None = None,
    mailer: Mailer | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators left as None get their Postgres / Resend implementations;
    the database pool is only opened when one of them needs it.
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    uses_database = store is None or identity is None or profiles is None
    users = UserRepo()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: validate settings, open the pool, start cleanup.
        Shutdown: stop cleanup, close the pool.
        """
        if uses_database:
            settings.validate()
            await db.init_pool(settings.DATABASE_URL)
            logger.info("Database pool initialized")

        cleanup_handle = None
        if settings.CLEANUP_INTERVAL_SECONDS > 0:
            cleanup_handle = asyncio.create_task(cleanup_task(app, settings.CLEANUP_INTERVAL_SECONDS))
            logger.info("Background cleanup task started")

        yield

        if cleanup_handle is not None:
            cleanup_handle.cancel()
            try:
                await cleanup_handle
            except asyncio.CancelledError:
                logger.info("Background cleanup task stopped")

        if uses_database:
            await db.close_pool()
            logger.info("Database pool closed")

    app = FastAPI(
        title="Art Finance Hub Auth",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    service_kwargs = {"clock": clock} if clock is not None else {}
    app.state.settings = settings
    app.state.registration_service = RegistrationService(store or RegistrationRepo(), settings, **service_kwargs)
    app.state.identity = identity or LocalIdentityProvider(users, settings)
    app.state.profiles = profiles or users
    app.state.mailer = mailer or ResendMailer(settings)
    app.state.rate_limiter = RateLimiter()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    _register_exception_handlers(app)

    # Register routes
    app.include_router(registration_routes.router)
    app.include_router(auth_routes.router)
    app.include_router(notification_routes.router)

    @app.get("/health")
    async def health():
        """Health check endpoint for uptime monitoring."""
        return {"status": "ok"}

    return app


app = create_app()
