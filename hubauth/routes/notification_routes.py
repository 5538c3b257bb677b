"""Account notification emails outside the token flow."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from hubauth.config import Settings
from hubauth.deps import client_ip, get_identity_provider, get_mailer, get_rate_limiter, get_settings
from hubauth.errors import UserNotFoundError
from hubauth.middleware.rate_limit import RateLimiter
from hubauth.models.registration import LoginNotificationRequest, LoginNotificationResponse, error_responses
from hubauth.services.email import Mailer
from hubauth.services.email_templates import render_login_notification_email
from hubauth.services.identity import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"], responses=error_responses(400, 404, 429, 502))


@router.post("/sendLoginNotification", status_code=200)
async def send_login_notification(
    req: LoginNotificationRequest,
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> LoginNotificationResponse:
    """
    Email a user that their account was signed in to.

    Device and IP default to the request's User-Agent and first
    X-Forwarded-For hop. Only registered addresses are notified.

    Rate limit: REGISTRATION_RATE_LIMIT_PER_IP per hour.
    """
    ip_address = client_ip(request)
    limiter.enforce(f"notify:{ip_address}", settings.REGISTRATION_RATE_LIMIT_PER_IP, 60)

    user = await identity.find_user_by_email(req.email)
    if user is None:
        raise UserNotFoundError()

    signed_in_at = datetime.now(UTC)
    content = render_login_notification_email(
        settings.APP_NAME,
        req.name or user.name or "User",
        req.device_info or request.headers.get("user-agent") or "Unknown device",
        req.ip_address or ip_address,
        signed_in_at,
    )
    await mailer.send(req.email, content)

    logger.info("Login notification sent to %s", req.email)
    return LoginNotificationResponse(timestamp=signed_in_at)
