"""Repository for user operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import asyncpg

from hubauth.db import system_conn
from hubauth.models.user import User


def _row_to_user(row: asyncpg.Record) -> User:
    """Convert a database row to a User model."""
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        login_count=row["login_count"],
        last_login_at=row["last_login_at"],
        created_at=row["created_at"],
    )


class UserRepo:
    """All user-related database operations."""

    async def get_by_email(self, email: str) -> User | None:
        """
        Get a user by email address.

        Args:
            email: Normalized email address to look up

        Returns:
            User if found, None otherwise
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM users WHERE email = $1",
                email,
            )
            return _row_to_user(row) if row else None

    async def create(self, email: str, name: str | None = None) -> User:
        """
        Create a new user on first token verification.

        The insert is a no-op on an existing email so two racing
        verifications for the same address end up with one user.

        Args:
            email: Email address for the new user
            name: Display name captured at registration

        Returns:
            The created (or already existing) User
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO users (email, name)
                VALUES ($1, $2)
                ON CONFLICT (email) DO UPDATE SET email = EXCLUDED.email
                RETURNING *
                """,
                email,
                name,
            )
            return _row_to_user(row)

    async def get(self, user_id: UUID) -> User | None:
        """
        Get a user by ID.

        Args:
            user_id: User UUID

        Returns:
            User if found, None otherwise
        """
        async with system_conn() as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
            return _row_to_user(row) if row else None

    async def record_login(self, user_id: UUID) -> None:
        """
        Stamp last_login_at and bump login_count.

        Args:
            user_id: User UUID
        """
        async with system_conn() as conn:
            await conn.execute(
                """
                UPDATE users
                SET last_login_at = now(), login_count = login_count + 1
                WHERE id = $1
                """,
                user_id,
            )

    async def claim_sign_in_credential(self, jti: str, user_id: UUID, expires_at: datetime) -> bool:
        """
        Record a sign-in credential as used.

        The primary key on jti makes this the single point where a
        credential is accepted; a replay inserts nothing.

        Args:
            jti: Credential id from the JWT
            user_id: User the credential signs in
            expires_at: Credential expiry, after which the row can be purged

        Returns:
            True on first use, False if the credential was already used
        """
        async with system_conn() as conn:
            result = await conn.execute(
                """
                INSERT INTO used_sign_in_credentials (jti, user_id, expires_at)
                VALUES ($1, $2, $3)
                ON CONFLICT (jti) DO NOTHING
                """,
                jti,
                user_id,
                expires_at,
            )
            return result == "INSERT 0 1"

    async def purge_used_credentials(self, before: datetime) -> int:
        """
        Delete used-credential rows whose credential expired before a cutoff.

        Args:
            before: Cutoff timestamp

        Returns:
            Number of rows deleted
        """
        async with system_conn() as conn:
            result = await conn.execute(
                "DELETE FROM used_sign_in_credentials WHERE expires_at < $1",
                before,
            )
            return int(result.split()[-1])
