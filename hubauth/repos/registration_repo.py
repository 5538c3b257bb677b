"""Repository for pending registration (token record) operations."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

import asyncpg

from hubauth.db import system_conn
from hubauth.models.registration import TokenRecord


class TokenStore(Protocol):
    """
    Storage capability the registration service depends on.

    RegistrationRepo is the Postgres implementation; tests run the service
    against an in-memory one.
    """

    async def insert(self, record: TokenRecord) -> None: ...

    async def get(self, token: str) -> TokenRecord | None: ...

    async def complete_if_pending(
        self,
        token: str,
        verified_at: datetime,
        ip_address: str | None,
        now: datetime,
    ) -> TokenRecord | None: ...

    async def expire_if_pending(self, token: str) -> None: ...

    async def find_pending(self, email: str | None = None) -> list[TokenRecord]: ...

    async def delete_many(self, tokens: list[str]) -> int: ...


def _row_to_token_record(row: asyncpg.Record) -> TokenRecord:
    """Convert a database row to a TokenRecord model."""
    return TokenRecord(
        token=row["token"],
        email=row["email"],
        name=row["name"],
        continue_url=row["continue_url"],
        status=row["status"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        verified_at=row["verified_at"],
        ip_address=row["ip_address"],
    )


class RegistrationRepo:
    """All pending_registrations database operations."""

    async def insert(self, record: TokenRecord) -> None:
        """
        Store a freshly issued token record.

        Single INSERT, no uniqueness pre-check: the token is the primary key
        and its entropy makes a collision a non-event.

        Args:
            record: Record to persist
        """
        async with system_conn() as conn:
            await conn.execute(
                """
                INSERT INTO pending_registrations (
                    token, email, name, continue_url, status,
                    created_at, expires_at, verified_at, ip_address
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                """,
                record.token,
                record.email,
                record.name,
                record.continue_url,
                record.status,
                record.created_at,
                record.expires_at,
                record.verified_at,
                record.ip_address,
            )

    async def get(self, token: str) -> TokenRecord | None:
        """
        Get a token record by its token value.

        Args:
            token: Registration / sign-in token

        Returns:
            TokenRecord if found, None otherwise
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM pending_registrations WHERE token = $1",
                token,
            )
            return _row_to_token_record(row) if row else None

    async def complete_if_pending(
        self,
        token: str,
        verified_at: datetime,
        ip_address: str | None,
        now: datetime,
    ) -> TokenRecord | None:
        """
        Consume a token: pending and unexpired -> completed, in one statement.

        Two concurrent callers cannot both get a row back; the loser sees
        None and has to re-read to find out why.

        Args:
            token: Token to consume
            verified_at: Consumption timestamp
            ip_address: Requester address for the audit trail
            now: Instant the expiry is checked against

        Returns:
            The completed TokenRecord, or None if the guard did not match
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                UPDATE pending_registrations
                SET status = 'completed', verified_at = $2, ip_address = $3
                WHERE token = $1
                AND status = 'pending'
                AND expires_at >= $4
                RETURNING *
                """,
                token,
                verified_at,
                ip_address,
                now,
            )
            return _row_to_token_record(row) if row else None

    async def expire_if_pending(self, token: str) -> None:
        """
        Record the pending -> expired transition.

        Args:
            token: Token found past its expiry
        """
        async with system_conn() as conn:
            await conn.execute(
                """
                UPDATE pending_registrations
                SET status = 'expired'
                WHERE token = $1 AND status = 'pending'
                """,
                token,
            )

    async def find_pending(self, email: str | None = None) -> list[TokenRecord]:
        """
        List pending token records, optionally for one email.

        Expiry is deliberately not part of the query; callers filter.

        Args:
            email: Normalized email address, or None for all

        Returns:
            Pending TokenRecords
        """
        async with system_conn() as conn:
            if email is None:
                rows = await conn.fetch(
                    "SELECT * FROM pending_registrations WHERE status = 'pending'",
                )
            else:
                rows = await conn.fetch(
                    """
                    SELECT * FROM pending_registrations
                    WHERE email = $1 AND status = 'pending'
                    """,
                    email,
                )
            return [_row_to_token_record(row) for row in rows]

    async def delete_many(self, tokens: list[str]) -> int:
        """
        Delete a batch of token records atomically.

        Args:
            tokens: Token values selected by an earlier query

        Returns:
            Number of records deleted
        """
        async with system_conn() as conn:
            result = await conn.execute(
                "DELETE FROM pending_registrations WHERE token = ANY($1::text[])",
                tokens,
            )
            # Result format is "DELETE N" where N is the count
            return int(result.split()[-1]) if result else 0
