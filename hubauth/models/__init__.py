"""
Pydantic models for the auth service.

All data shapes defined here. No imports from db, repos, or routes.
"""

from hubauth.models.registration import (
    CleanupResponse,
    CompleteSignInRequest,
    CreateRegistrationRequest,
    CreateSignInRequest,
    ErrorResponse,
    LoginNotificationRequest,
    LoginNotificationResponse,
    PendingToken,
    PendingTokenResponse,
    RegistrationData,
    RegistrationStatus,
    TokenRecord,
    VerifyTokenRequest,
    VerifyTokenResponse,
)
from hubauth.models.user import User, UserPublic

__all__ = [
    # User models
    "User",
    "UserPublic",
    # Registration token models
    "TokenRecord",
    "RegistrationStatus",
    "PendingToken",
    "RegistrationData",
    # Request / response models
    "CreateRegistrationRequest",
    "CreateSignInRequest",
    "VerifyTokenRequest",
    "CompleteSignInRequest",
    "LoginNotificationRequest",
    "PendingTokenResponse",
    "VerifyTokenResponse",
    "CleanupResponse",
    "LoginNotificationResponse",
    "ErrorResponse",
]
