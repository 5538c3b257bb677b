"""User identity models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr


class User(BaseModel):
    """Core user model. Represents a row in the users table."""

    id: UUID
    email: EmailStr
    name: str | None = None
    login_count: int = 0
    last_login_at: datetime | None = None
    created_at: datetime


class UserPublic(BaseModel):
    """What the API returns."""

    id: UUID
    email: EmailStr
    name: str | None
    login_count: int
    last_login_at: datetime | None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserPublic:
        """Convert internal User model to public API response."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            login_count=user.login_count,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
        )
