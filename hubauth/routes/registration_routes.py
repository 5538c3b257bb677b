"""Registration and sign-in routes for email-link auth."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from hubauth.config import Settings
from hubauth.deps import (
    client_ip,
    get_identity_provider,
    get_mailer,
    get_rate_limiter,
    get_registration_service,
    get_settings,
    get_user_profiles,
)
from hubauth.errors import EmailDeliveryError, UserExistsError, UserNotFoundError
from hubauth.middleware.rate_limit import RateLimiter
from hubauth.models.registration import (
    CleanupResponse,
    CreateRegistrationRequest,
    CreateSignInRequest,
    PendingTokenResponse,
    VerifyTokenRequest,
    VerifyTokenResponse,
    error_responses,
)
from hubauth.services.email import Mailer
from hubauth.services.email_templates import (
    REGISTRATION_TOKEN_PARAM,
    SIGN_IN_TOKEN_PARAM,
    build_link,
    render_registration_email,
    render_sign_in_email,
    render_welcome_email,
)
from hubauth.services.identity import IdentityProvider, UserProfiles
from hubauth.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"], responses=error_responses(400, 404, 409, 410, 429, 500, 502))

SettingsDep = Annotated[Settings, Depends(get_settings)]
ServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]
IdentityDep = Annotated[IdentityProvider, Depends(get_identity_provider)]
ProfilesDep = Annotated[UserProfiles, Depends(get_user_profiles)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]
LimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]


async def _supersede_pending(service: RegistrationService, email: str) -> None:
    # Latest link wins: an older pending token for the same address is removed.
    if await service.has_pending_registration(email):
        cancelled = await service.cancel_pending_registration(email)
        logger.info("Superseded %d pending token(s) for %s", cancelled, email)


async def _send_welcome(settings: Settings, mailer: Mailer, email: str, name: str, app_url: str) -> None:
    try:
        await mailer.send(email, render_welcome_email(settings.APP_NAME, name, app_url))
    except EmailDeliveryError:
        logger.warning("Welcome email to %s could not be sent", email)
        return
    logger.info("Welcome email sent to %s", email)


@router.post("/createRegistration", status_code=200)
async def create_registration(
    req: CreateRegistrationRequest,
    request: Request,
    settings: SettingsDep,
    service: ServiceDep,
    identity: IdentityDep,
    mailer: MailerDep,
    limiter: LimiterDep,
) -> PendingTokenResponse:
    """
    Start a registration: email a one-time link to a new address.

    Rate limit: REGISTRATION_RATE_LIMIT_PER_IP per hour.
    """
    limiter.enforce(f"issue:{client_ip(request)}", settings.REGISTRATION_RATE_LIMIT_PER_IP, 60)

    logger.info("Creating registration for %s", req.email)

    if await identity.find_user_by_email(req.email) is not None:
        raise UserExistsError()

    await _supersede_pending(service, req.email)
    pending = await service.create_pending_registration(req.email, req.name, req.continue_url)

    verification_url = build_link(req.continue_url, REGISTRATION_TOKEN_PARAM, pending.token)
    content = render_registration_email(
        settings.APP_NAME, req.name, verification_url, settings.REGISTRATION_EXPIRY_HOURS
    )
    await mailer.send(req.email, content)

    logger.info("Registration email sent to %s", req.email)
    return PendingTokenResponse(message="Registration email sent successfully", expires_at=pending.expires_at)


@router.post("/createSignInRequest", status_code=200)
async def create_sign_in_request(
    req: CreateSignInRequest,
    request: Request,
    settings: SettingsDep,
    service: ServiceDep,
    identity: IdentityDep,
    mailer: MailerDep,
    limiter: LimiterDep,
) -> PendingTokenResponse:
    """
    Email a one-time sign-in link to an existing user.

    Reuses the registration token machinery with the user's stored name.
    """
    limiter.enforce(f"issue:{client_ip(request)}", settings.REGISTRATION_RATE_LIMIT_PER_IP, 60)

    logger.info("Creating sign-in request for %s", req.email)

    user = await identity.find_user_by_email(req.email)
    if user is None:
        raise UserNotFoundError()

    name = user.name or req.email.split("@")[0]

    await _supersede_pending(service, req.email)
    pending = await service.create_pending_registration(req.email, name, req.continue_url)

    sign_in_url = build_link(req.continue_url, SIGN_IN_TOKEN_PARAM, pending.token)
    content = render_sign_in_email(settings.APP_NAME, name, sign_in_url, settings.REGISTRATION_EXPIRY_HOURS)
    await mailer.send(req.email, content)

    logger.info("Sign-in email sent to %s", req.email)
    return PendingTokenResponse(message="Sign-in email sent successfully", expires_at=pending.expires_at)


@router.post("/verifyRegistrationToken", status_code=200)
async def verify_registration_token(
    req: VerifyTokenRequest,
    request: Request,
    settings: SettingsDep,
    service: ServiceDep,
    identity: IdentityDep,
    profiles: ProfilesDep,
    mailer: MailerDep,
    limiter: LimiterDep,
) -> VerifyTokenResponse:
    """
    Consume a registration / sign-in token and hand back a sign-in link.

    The token is consumed before the identity work starts. If issuing the
    link fails afterwards the token stays completed; the user requests a
    new one. A user created here gets a welcome email; a failed welcome
    email does not fail the verification.

    Rate limit: VERIFY_RATE_LIMIT_PER_IP per minute (token brute force).
    """
    ip_address = client_ip(request)
    limiter.enforce(f"verify:{ip_address}", settings.VERIFY_RATE_LIMIT_PER_IP, 1)

    logger.info("Verifying registration token from IP: %s", ip_address)
    data = await service.verify_registration_token(req.token, ip_address)

    user = await identity.find_user_by_email(data.email)
    if user is None:
        user = await identity.create_user(data.email, data.name)
        await _send_welcome(settings, mailer, data.email, data.name, data.continue_url)
    await profiles.record_login(user.id)

    sign_in_link = await identity.issue_sign_in_credential(data.email, data.continue_url)
    logger.info("Generated sign-in link for %s", data.email)

    return VerifyTokenResponse(
        email=data.email,
        name=data.name,
        sign_in_link=sign_in_link,
        continue_url=data.continue_url,
    )


@router.api_route("/cleanupExpiredRegistrations", methods=["GET", "POST"], status_code=200)
async def cleanup_expired_registrations(service: ServiceDep) -> CleanupResponse:
    """Delete stale pending tokens. Called by an external scheduler."""
    deleted_count = await service.cleanup_expired_registrations()
    return CleanupResponse(
        deleted_count=deleted_count,
        message=f"Deleted {deleted_count} expired registrations",
    )
