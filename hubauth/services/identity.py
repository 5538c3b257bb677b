"""
Identity provider bridge.

The request handlers only ever talk to the IdentityProvider protocol:
find a user, create a user, mint a sign-in link. LocalIdentityProvider
backs it with the users table and signed sign-in credentials.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol
from urllib.parse import urlencode
from uuid import UUID

from hubauth.auth import create_sign_in_credential
from hubauth.config import Settings
from hubauth.errors import UserNotFoundError
from hubauth.models.user import User
from hubauth.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    async def find_user_by_email(self, email: str) -> User | None: ...

    async def create_user(self, email: str, name: str) -> User: ...

    async def issue_sign_in_credential(self, email: str, continue_url: str) -> str: ...


class UserProfiles(Protocol):
    """Profile bookkeeping outside the identity itself."""

    async def get(self, user_id: UUID) -> User | None: ...

    async def record_login(self, user_id: UUID) -> None: ...

    async def claim_sign_in_credential(self, jti: str, user_id: UUID, expires_at: datetime) -> bool: ...

    async def purge_used_credentials(self, before: datetime) -> int: ...


class LocalIdentityProvider:
    """Identity provider backed by the users table."""

    def __init__(self, users: UserRepo, settings: Settings) -> None:
        self._users = users
        self._settings = settings

    async def find_user_by_email(self, email: str) -> User | None:
        return await self._users.get_by_email(email)

    async def create_user(self, email: str, name: str) -> User:
        user = await self._users.create(email, name=name)
        logger.info("Created user %s for %s", user.id, email)
        return user

    async def issue_sign_in_credential(self, email: str, continue_url: str) -> str:
        """
        Mint a sign-in link for an existing user.

        Raises:
            UserNotFoundError: No identity for the email
        """
        user = await self._users.get_by_email(email)
        if user is None:
            raise UserNotFoundError()

        credential = create_sign_in_credential(self._settings, user.id, email, continue_url)
        query = urlencode({"credential": credential})
        return f"{self._settings.PUBLIC_URL}/auth/complete?{query}"
