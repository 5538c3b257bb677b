"""Session routes: trade a sign-in credential for a session cookie."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from hubauth.auth import create_session_jwt, decode_sign_in_credential
from hubauth.config import Settings
from hubauth.deps import get_current_user, get_settings, get_user_profiles
from hubauth.errors import InvalidCredentialError
from hubauth.models.registration import CompleteSignInRequest, error_responses
from hubauth.models.user import User, UserPublic
from hubauth.services.identity import UserProfiles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"], responses=error_responses(400, 401))


def _set_session_cookie(response: Response, value: str, max_age: int) -> None:
    response.set_cookie(
        key="session",
        value=value,
        httponly=True,
        secure=True,  # HTTPS only
        samesite="lax",
        max_age=max_age,
        path="/",
    )


@router.post("/complete", status_code=200)
async def complete_sign_in(
    req: CompleteSignInRequest,
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
    profiles: Annotated[UserProfiles, Depends(get_user_profiles)],
) -> UserPublic:
    """
    Exchange the credential from a sign-in link for a session.

    Each credential is accepted once. Sets an HTTP-only session cookie.
    """
    user_id, payload = decode_sign_in_credential(settings, req.credential)

    user = await profiles.get(user_id)
    if user is None:
        raise InvalidCredentialError("User not found. Please sign in again.")

    expires_at = datetime.fromtimestamp(payload["exp"], UTC)
    if not await profiles.claim_sign_in_credential(payload["jti"], user.id, expires_at):
        logger.warning("Replayed sign-in credential for %s", user.email)
        raise InvalidCredentialError("This sign-in link has already been used. Please request a new one.")

    _set_session_cookie(response, create_session_jwt(settings, user.id), settings.JWT_EXPIRY_HOURS * 3600)
    logger.info("Session started for %s", user.email)
    return UserPublic.from_user(user)


@router.get("/me", status_code=200)
async def get_current_user_endpoint(
    user: Annotated[User, Depends(get_current_user)],
) -> UserPublic:
    """
    Get the current authenticated user.

    Requires valid session cookie.
    """
    return UserPublic.from_user(user)


@router.post("/logout", status_code=200)
async def logout_endpoint(response: Response) -> dict:
    """Clear the session cookie."""
    _set_session_cookie(response, "", 0)
    return {"success": True, "message": "Logged out successfully"}
