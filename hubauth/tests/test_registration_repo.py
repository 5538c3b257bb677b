"""Tests for the Postgres token store with the connection mocked."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from hubauth.models.registration import TokenRecord
from hubauth.repos.registration_repo import RegistrationRepo

pytestmark = pytest.mark.asyncio(loop_scope="session")

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _row(**overrides) -> dict:
    row = {
        "token": "tok-123",
        "email": "a@x.com",
        "name": "Ann",
        "continue_url": "https://app",
        "status": "pending",
        "created_at": NOW,
        "expires_at": NOW + timedelta(hours=24),
        "verified_at": None,
        "ip_address": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def conn():
    mock_conn = AsyncMock()

    @asynccontextmanager
    async def fake_system_conn():
        yield mock_conn

    with patch("hubauth.repos.registration_repo.system_conn", fake_system_conn):
        yield mock_conn


async def test_insert_writes_every_field(conn):
    record = TokenRecord(**_row())

    await RegistrationRepo().insert(record)

    sql, *args = conn.execute.call_args.args
    assert "INSERT INTO pending_registrations" in sql
    assert args == ["tok-123", "a@x.com", "Ann", "https://app", "pending", NOW, NOW + timedelta(hours=24), None, None]


async def test_get_found(conn):
    conn.fetchrow.return_value = _row()

    record = await RegistrationRepo().get("tok-123")

    assert record.token == "tok-123"
    assert record.continue_url == "https://app"
    assert conn.fetchrow.call_args.args[1] == "tok-123"


async def test_get_missing(conn):
    conn.fetchrow.return_value = None

    assert await RegistrationRepo().get("nope") is None


async def test_complete_is_a_guarded_update(conn):
    conn.fetchrow.return_value = _row(status="completed", verified_at=NOW, ip_address="10.0.0.1")

    record = await RegistrationRepo().complete_if_pending("tok-123", NOW, "10.0.0.1", NOW)

    sql = conn.fetchrow.call_args.args[0]
    assert "UPDATE pending_registrations" in sql
    assert "status = 'pending'" in sql
    assert "expires_at >= $4" in sql
    assert record.status == "completed"
    assert record.ip_address == "10.0.0.1"


async def test_complete_returns_none_when_guard_fails(conn):
    conn.fetchrow.return_value = None

    assert await RegistrationRepo().complete_if_pending("tok-123", NOW, None, NOW) is None


async def test_expire_only_touches_pending(conn):
    await RegistrationRepo().expire_if_pending("tok-123")

    sql, token = conn.execute.call_args.args
    assert "SET status = 'expired'" in sql
    assert "status = 'pending'" in sql
    assert token == "tok-123"


async def test_find_pending_for_email(conn):
    conn.fetch.return_value = [_row(), _row(token="tok-456")]

    records = await RegistrationRepo().find_pending("a@x.com")

    assert [r.token for r in records] == ["tok-123", "tok-456"]
    sql, email = conn.fetch.call_args.args
    assert "email = $1" in sql
    assert email == "a@x.com"


async def test_find_pending_all(conn):
    conn.fetch.return_value = []

    assert await RegistrationRepo().find_pending() == []
    assert len(conn.fetch.call_args.args) == 1


async def test_delete_many_returns_count(conn):
    conn.execute.return_value = "DELETE 2"

    deleted = await RegistrationRepo().delete_many(["tok-1", "tok-2"])

    assert deleted == 2
    sql, tokens = conn.execute.call_args.args
    assert "ANY($1::text[])" in sql
    assert tokens == ["tok-1", "tok-2"]
