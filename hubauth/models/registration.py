"""Registration token models and the request/response shapes of the public endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

RegistrationStatus = Literal["pending", "completed", "expired"]


class _CamelModel(BaseModel):
    """Serialises with camelCase keys, accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenRecord(_CamelModel):
    """
    Core token record. Represents a row in the pending_registrations table.

    Dumped with by_alias=True the keys are exactly the document fields the
    mobile client and older tooling expect (continueUrl, expiresAt, ...).
    """

    token: str
    email: EmailStr
    name: str
    continue_url: str
    status: RegistrationStatus = "pending"
    created_at: datetime
    expires_at: datetime
    verified_at: datetime | None = None
    ip_address: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class PendingToken(BaseModel):
    """What create_pending_registration hands back to the caller."""

    token: str
    expires_at: datetime


class RegistrationData(BaseModel):
    """Fields released by a successful token consumption."""

    email: str
    name: str
    continue_url: str


def _normalize_email(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class CreateRegistrationRequest(_CamelModel):
    """Body of POST /createRegistration."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    email: EmailStr
    name: str
    continue_url: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        return _normalize_email(value)

    @field_validator("name")
    @classmethod
    def check_name_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value


class CreateSignInRequest(_CamelModel):
    """Body of POST /createSignInRequest."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    email: EmailStr
    continue_url: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        return _normalize_email(value)


class LoginNotificationRequest(_CamelModel):
    """Body of POST /sendLoginNotification. Missing details are derived from the request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    email: EmailStr
    name: str | None = None
    device_info: str | None = Field(None, max_length=256)
    ip_address: str | None = Field(None, max_length=64)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        return _normalize_email(value)


class VerifyTokenRequest(BaseModel):
    """Body of POST /verifyRegistrationToken."""

    model_config = ConfigDict(extra="forbid")

    token: str = Field(..., min_length=1, max_length=256)


class CompleteSignInRequest(BaseModel):
    """Body of POST /auth/complete."""

    model_config = ConfigDict(extra="forbid")

    credential: str = Field(..., min_length=1)


class PendingTokenResponse(_CamelModel):
    """Response after a registration or sign-in email has been sent."""

    success: bool = True
    message: str
    expires_at: datetime


class VerifyTokenResponse(_CamelModel):
    """Response after a token was consumed and a sign-in link issued."""

    success: bool = True
    email: str
    name: str
    sign_in_link: str
    continue_url: str


class CleanupResponse(_CamelModel):
    """Response of the cleanup hook."""

    success: bool = True
    deleted_count: int
    message: str


class LoginNotificationResponse(_CamelModel):
    """Response after a login alert was sent."""

    success: bool = True
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Body of every failure response."""

    success: bool = False
    error: str
    message: str


def error_responses(*status_codes: int) -> dict[int | str, dict]:
    """OpenAPI `responses` entries documenting the error body for each status."""
    return {code: {"model": ErrorResponse} for code in status_codes}
