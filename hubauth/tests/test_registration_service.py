"""
Tests for the registration token service (issuance, consumption, cleanup).
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from hubauth.errors import InvalidTokenError, TokenAlreadyUsedError, TokenExpiredError
from hubauth.services.registration_service import RegistrationService
from hubauth.tests.fakes import YieldingTokenStore

pytestmark = pytest.mark.asyncio(loop_scope="session")


class TestCreatePendingRegistration:
    """Token issuance."""

    async def test_returns_token_and_expiry(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")

        assert pending.token in store.records
        assert pending.expires_at == clock.now + timedelta(hours=24)

    async def test_record_is_pending_with_all_fields(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")

        record = store.records[pending.token]
        assert record.email == "a@x.com"
        assert record.name == "Ann"
        assert record.continue_url == "https://app"
        assert record.status == "pending"
        assert record.created_at == clock.now
        assert record.verified_at is None
        assert record.ip_address is None

    async def test_expiry_is_exactly_24_hours_after_creation(self, service, store, clock):
        for _ in range(3):
            pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
            record = store.records[pending.token]
            assert record.expires_at - record.created_at == timedelta(hours=24)
            clock.advance(minutes=37, seconds=11)

    async def test_tokens_are_unique_and_url_safe(self, service):
        tokens = set()
        for i in range(50):
            pending = await service.create_pending_registration(f"user{i}@x.com", "Ann", "https://app")
            tokens.add(pending.token)

        assert len(tokens) == 50
        for token in tokens:
            assert len(token) == 43
            assert all(c.isalnum() or c in "-_" for c in token)

    async def test_does_not_read_before_writing(self, service, store):
        await service.create_pending_registration("a@x.com", "Ann", "https://app")

        assert store.delete_batches == []
        assert len(store.records) == 1


class TestVerifyRegistrationToken:
    """Token consumption state machine."""

    async def test_unknown_token_is_invalid(self, service):
        with pytest.raises(InvalidTokenError) as exc_info:
            await service.verify_registration_token("does-not-exist")

        assert exc_info.value.code == "INVALID_TOKEN"
        assert exc_info.value.message == "Registration token not found"

    async def test_first_verification_completes_the_record(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        clock.advance(minutes=5)

        data = await service.verify_registration_token(pending.token, ip_address="10.0.0.7")

        assert data.email == "a@x.com"
        assert data.name == "Ann"
        assert data.continue_url == "https://app"

        record = store.records[pending.token]
        assert record.status == "completed"
        assert record.verified_at == clock.now
        assert record.ip_address == "10.0.0.7"

    async def test_ip_address_is_optional(self, service, store):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")

        await service.verify_registration_token(pending.token)

        assert store.records[pending.token].ip_address is None

    async def test_second_verification_is_rejected(self, service):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        await service.verify_registration_token(pending.token)

        for _ in range(3):
            with pytest.raises(TokenAlreadyUsedError):
                await service.verify_registration_token(pending.token)

    async def test_completed_token_stays_used_after_expiry(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        await service.verify_registration_token(pending.token)
        clock.advance(hours=48)

        with pytest.raises(TokenAlreadyUsedError):
            await service.verify_registration_token(pending.token)
        assert store.records[pending.token].status == "completed"

    async def test_expired_token_is_marked_expired(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        store.set_expires_at(pending.token, clock.now - timedelta(seconds=1))

        with pytest.raises(TokenExpiredError):
            await service.verify_registration_token(pending.token)

        record = store.records[pending.token]
        assert record.status == "expired"
        assert record.verified_at is None

    async def test_expiry_wins_over_reuse_on_first_attempt(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        clock.advance(hours=24, seconds=1)

        with pytest.raises(TokenExpiredError):
            await service.verify_registration_token(pending.token)

        # Still expired, never "already used"
        with pytest.raises(TokenExpiredError):
            await service.verify_registration_token(pending.token)

    async def test_token_is_valid_at_the_exact_expiry_instant(self, service, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        clock.advance(hours=24)

        data = await service.verify_registration_token(pending.token)

        assert data.email == "a@x.com"

    async def test_concurrent_verifications_consume_once(self, settings, clock):
        store = YieldingTokenStore()
        service = RegistrationService(store, settings, clock=clock)
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")

        results = await asyncio.gather(
            *(service.verify_registration_token(pending.token) for _ in range(5)),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 4
        assert all(isinstance(f, TokenAlreadyUsedError) for f in failures)
        assert store.records[pending.token].status == "completed"

    async def test_token_removed_between_read_and_consume_is_invalid(self, settings, clock):
        store = YieldingTokenStore()
        service = RegistrationService(store, settings, clock=clock)
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")

        # The verification reads first, then the cancel runs while it is suspended
        results = await asyncio.gather(
            service.verify_registration_token(pending.token),
            service.cancel_pending_registration("a@x.com"),
            return_exceptions=True,
        )

        assert isinstance(results[0], InvalidTokenError)


class TestHasPendingRegistration:
    async def test_false_without_records(self, service):
        assert await service.has_pending_registration("a@x.com") is False

    async def test_true_for_pending(self, service):
        await service.create_pending_registration("a@x.com", "Ann", "https://app")

        assert await service.has_pending_registration("a@x.com") is True
        assert await service.has_pending_registration("b@x.com") is False

    async def test_ignores_expiry(self, service, clock):
        await service.create_pending_registration("a@x.com", "Ann", "https://app")
        clock.advance(days=3)

        assert await service.has_pending_registration("a@x.com") is True

    async def test_false_once_completed(self, service):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        await service.verify_registration_token(pending.token)

        assert await service.has_pending_registration("a@x.com") is False


class TestCancelPendingRegistration:
    async def test_deletes_all_pending_for_email_in_one_batch(self, service, store):
        for _ in range(3):
            await service.create_pending_registration("a@x.com", "Ann", "https://app")
        other = await service.create_pending_registration("b@x.com", "Bob", "https://app")

        cancelled = await service.cancel_pending_registration("a@x.com")

        assert cancelled == 3
        assert len(store.delete_batches) == 1
        assert len(store.delete_batches[0]) == 3
        assert list(store.records) == [other.token]

    async def test_no_pending_is_a_no_op(self, service, store):
        cancelled = await service.cancel_pending_registration("a@x.com")

        assert cancelled == 0
        assert store.delete_batches == []

    async def test_keeps_completed_records(self, service, store):
        used = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        await service.verify_registration_token(used.token)
        await service.create_pending_registration("a@x.com", "Ann", "https://app")

        cancelled = await service.cancel_pending_registration("a@x.com")

        assert cancelled == 1
        assert list(store.records) == [used.token]


class TestCleanupExpiredRegistrations:
    async def test_deletes_only_stale_pending(self, service, store, clock):
        stale_1 = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        stale_2 = await service.create_pending_registration("b@x.com", "Bob", "https://app")
        fresh = await service.create_pending_registration("c@x.com", "Cat", "https://app")
        used = await service.create_pending_registration("d@x.com", "Dan", "https://app")
        await service.verify_registration_token(used.token)

        store.set_expires_at(stale_1.token, clock.now - timedelta(hours=1))
        store.set_expires_at(stale_2.token, clock.now - timedelta(seconds=1))
        store.set_expires_at(used.token, clock.now - timedelta(hours=1))

        deleted = await service.cleanup_expired_registrations()

        assert deleted == 2
        assert set(store.records) == {fresh.token, used.token}
        assert len(store.delete_batches) == 1

    async def test_leaves_records_already_marked_expired(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        clock.advance(days=2)
        with pytest.raises(TokenExpiredError):
            await service.verify_registration_token(pending.token)

        deleted = await service.cleanup_expired_registrations()

        assert deleted == 0
        assert store.records[pending.token].status == "expired"

    async def test_nothing_eligible_makes_no_delete_call(self, service, store):
        await service.create_pending_registration("a@x.com", "Ann", "https://app")

        assert await service.cleanup_expired_registrations() == 0
        assert store.delete_batches == []

    async def test_empty_store(self, service, store):
        assert await service.cleanup_expired_registrations() == 0
        assert store.delete_batches == []


class TestEndToEnd:
    async def test_registration_flow(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        assert pending.expires_at == clock.now + timedelta(hours=24)

        data = await service.verify_registration_token(pending.token)
        assert data.model_dump() == {"email": "a@x.com", "name": "Ann", "continue_url": "https://app"}
        assert store.records[pending.token].status == "completed"

        with pytest.raises(TokenAlreadyUsedError):
            await service.verify_registration_token(pending.token)

    async def test_expiry_flow(self, service, store, clock):
        pending = await service.create_pending_registration("a@x.com", "Ann", "https://app")
        store.set_expires_at(pending.token, clock.now - timedelta(seconds=1))

        with pytest.raises(TokenExpiredError):
            await service.verify_registration_token(pending.token)

        record = await store.get(pending.token)
        assert record.status == "expired"
