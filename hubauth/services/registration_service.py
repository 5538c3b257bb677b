"""
Registration / sign-in token service.

Owns the lifecycle of a token record:

    pending --verify--> completed
    pending --verify after expiry--> expired
    pending --superseded or stale--> deleted

completed and expired are terminal. Consumption is a compare-and-swap on
status == 'pending' in the store, so two concurrent verifications of the
same token can never both succeed.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from hubauth.config import Settings
from hubauth.errors import InvalidTokenError, TokenAlreadyUsedError, TokenExpiredError
from hubauth.logging_config import redact_token
from hubauth.models.registration import PendingToken, RegistrationData, TokenRecord
from hubauth.repos.registration_repo import TokenStore

logger = logging.getLogger(__name__)

# 32 random bytes, base64url encoded -> 43 characters
TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate a URL-safe registration token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RegistrationService:
    """Token issuance, verification and cleanup on top of a TokenStore."""

    def __init__(
        self,
        store: TokenStore,
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._validity = timedelta(hours=settings.REGISTRATION_EXPIRY_HOURS)
        self._clock = clock

    async def create_pending_registration(self, email: str, name: str, continue_url: str) -> PendingToken:
        """
        Issue a new pending token.

        Args:
            email: Normalized email address
            name: Display name to carry through to sign-in
            continue_url: Where the client goes after the credential exchange

        Returns:
            The token and its expiry instant
        """
        now = self._clock()
        record = TokenRecord(
            token=generate_token(),
            email=email,
            name=name,
            continue_url=continue_url,
            status="pending",
            created_at=now,
            expires_at=now + self._validity,
        )
        await self._store.insert(record)

        logger.info("Created pending registration for %s with token %s", email, redact_token(record.token))
        return PendingToken(token=record.token, expires_at=record.expires_at)

    async def verify_registration_token(self, token: str, ip_address: str | None = None) -> RegistrationData:
        """
        Consume a token.

        Raises:
            InvalidTokenError: No record for this token
            TokenAlreadyUsedError: The token was consumed before
            TokenExpiredError: The token is past its expiry; the record is
                moved to 'expired' before raising
        """
        record = await self._store.get(token)
        if record is None:
            raise InvalidTokenError()

        now = self._clock()
        await self._reject_unusable(record, now)

        completed = await self._store.complete_if_pending(token, now, ip_address, now)
        if completed is None:
            # Lost a race with another verification (or a cleanup). Re-read
            # so the caller gets the precise reason.
            current = await self._store.get(token)
            if current is None:
                raise InvalidTokenError()
            await self._reject_unusable(current, self._clock())
            raise TokenAlreadyUsedError()

        logger.info("Verified registration token for %s", completed.email)
        return RegistrationData(
            email=completed.email,
            name=completed.name,
            continue_url=completed.continue_url,
        )

    async def _reject_unusable(self, record: TokenRecord, now: datetime) -> None:
        if record.status == "completed":
            raise TokenAlreadyUsedError()
        if record.status == "expired" or record.is_expired(now):
            await self._store.expire_if_pending(record.token)
            logger.info("Registration token %s expired", redact_token(record.token))
            raise TokenExpiredError()

    async def has_pending_registration(self, email: str) -> bool:
        """True if any pending record exists for the email, expired or not."""
        pending = await self._store.find_pending(email)
        return bool(pending)

    async def cancel_pending_registration(self, email: str) -> int:
        """
        Delete every pending record for an email in one batch.

        Returns:
            Number of records removed (0 without touching the store)
        """
        pending = await self._store.find_pending(email)
        if not pending:
            return 0

        deleted = await self._store.delete_many([record.token for record in pending])
        logger.info("Cancelled %d pending registration(s) for %s", deleted, email)
        return deleted

    async def cleanup_expired_registrations(self) -> int:
        """
        Delete pending records whose expiry has passed.

        Completed and expired records are kept for audit.

        Returns:
            Number of records deleted
        """
        now = self._clock()
        logger.info("Starting cleanup of registrations expired before %s", now.isoformat())

        pending = await self._store.find_pending()
        stale = [record.token for record in pending if record.is_expired(now)]
        if not stale:
            logger.info("No expired registrations to clean up")
            return 0

        deleted = await self._store.delete_many(stale)
        logger.info("Deleted %d expired registrations", deleted)
        return deleted
