"""
FastAPI dependencies.

Collaborators are built once in create_app() and kept on app.state;
routes reach them only through these functions.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Cookie, Depends, Request

from hubauth.auth import decode_session_jwt
from hubauth.config import Settings
from hubauth.errors import InvalidCredentialError
from hubauth.middleware.rate_limit import RateLimiter
from hubauth.models.user import User
from hubauth.services.email import Mailer
from hubauth.services.identity import IdentityProvider, UserProfiles
from hubauth.services.registration_service import RegistrationService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registration_service(request: Request) -> RegistrationService:
    return request.app.state.registration_service


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity


def get_user_profiles(request: Request) -> UserProfiles:
    return request.app.state.profiles


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def get_current_user(
    settings: Annotated[Settings, Depends(get_settings)],
    profiles: Annotated[UserProfiles, Depends(get_user_profiles)],
    session: Annotated[str | None, Cookie()] = None,
) -> User:
    """
    Authenticate the browser session cookie.

    Raises:
        InvalidCredentialError: Missing, invalid or orphaned session
    """
    if not session:
        raise InvalidCredentialError("Not authenticated. Please sign in.")

    user_id = decode_session_jwt(settings, session)
    user = await profiles.get(user_id)
    if user is None:
        raise InvalidCredentialError("User not found. Please sign in again.")
    return user
