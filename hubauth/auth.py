"""
Signed credentials for the sign-in hand-off and the browser session.

A verified registration token is exchanged for a short-lived sign-in
credential (embedded in the sign-in link); the client trades that
credential for a session cookie at /auth/complete.
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from hubauth.config import Settings
from hubauth.errors import InvalidCredentialError

SIGN_IN_PURPOSE = "sign_in"
SESSION_PURPOSE = "session"


def create_sign_in_credential(settings: Settings, user_id: UUID, email: str, continue_url: str) -> str:
    """
    Create the one-time sign-in credential for a user.

    Args:
        settings: Provides the signing secret and lifetime
        user_id: User the credential signs in
        email: User's email, echoed back to the client
        continue_url: Redirect target after sign-in

    Returns:
        Signed JWT string
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "email": email,
        "continue_url": continue_url,
        "purpose": SIGN_IN_PURPOSE,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(minutes=settings.SIGN_IN_CREDENTIAL_EXPIRY_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_session_jwt(settings: Settings, user_id: UUID) -> str:
    """
    Create a JWT for a user session.

    Args:
        settings: Provides the signing secret and lifetime
        user_id: User UUID to encode in the token

    Returns:
        Signed JWT string
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "purpose": SESSION_PURPOSE,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _decode(settings: Settings, token: str, purpose: str, expired_message: str) -> tuple[UUID, dict]:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidCredentialError(expired_message) from e
    except jwt.InvalidTokenError as e:
        raise InvalidCredentialError() from e

    if payload.get("purpose") != purpose:
        raise InvalidCredentialError()

    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError as e:
        raise InvalidCredentialError() from e

    return user_id, payload


def decode_sign_in_credential(settings: Settings, credential: str) -> tuple[UUID, dict]:
    """
    Verify a sign-in credential.

    The signature check alone does not make it one-time; the caller
    still has to claim the payload's jti.

    Returns:
        (user_id, payload)

    Raises:
        InvalidCredentialError: Expired, tampered, or not a sign-in credential
    """
    user_id, payload = _decode(
        settings,
        credential,
        SIGN_IN_PURPOSE,
        "This sign-in link has expired. Please request a new one.",
    )

    jti = payload.get("jti")
    if not isinstance(jti, str) or not jti:
        raise InvalidCredentialError()

    return user_id, payload


def decode_session_jwt(settings: Settings, token: str) -> UUID:
    """
    Verify a session cookie.

    Returns:
        The session's user id

    Raises:
        InvalidCredentialError: Expired, tampered, or not a session token
    """
    user_id, _ = _decode(settings, token, SESSION_PURPOSE, "Session expired. Please sign in again.")
    return user_id
