"""
Finance Hub auth configuration: all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    def __init__(self) -> None:
        # Database
        self.DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

        # Email (Resend)
        self.RESEND_API_KEY: str = os.environ.get("RESEND_API_KEY", "")
        self.EMAIL_FROM: str = os.environ.get("EMAIL_FROM", "Art Finance Hub <noreply@artfinancehub.com>")
        self.APP_NAME: str = os.environ.get("APP_NAME", "Art Finance Hub")

        # Sessions and sign-in credentials
        self.JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
        self.JWT_ALGORITHM: str = "HS256"
        self.JWT_EXPIRY_HOURS: int = 24
        self.SIGN_IN_CREDENTIAL_EXPIRY_MINUTES: int = int(os.environ.get("SIGN_IN_CREDENTIAL_EXPIRY_MINUTES", "60"))

        # Registration tokens
        self.REGISTRATION_EXPIRY_HOURS: int = 24
        self.REGISTRATION_RATE_LIMIT_PER_IP: int = int(os.environ.get("REGISTRATION_RATE_LIMIT_PER_IP", "20"))  # per hour
        self.VERIFY_RATE_LIMIT_PER_IP: int = int(os.environ.get("VERIFY_RATE_LIMIT_PER_IP", "10"))  # per minute
        self.CLEANUP_INTERVAL_SECONDS: int = int(os.environ.get("CLEANUP_INTERVAL_SECONDS", "86400"))

        # HTTP
        self.CORS_ALLOW_ORIGINS: list[str] = [
            origin.strip() for origin in os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",") if origin.strip()
        ]

        # Application
        self.ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
        self.LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def PUBLIC_URL(self) -> str:
        url = os.environ.get("PUBLIC_URL")
        if url:
            return url.rstrip("/")
        return "http://localhost:8000" if self.ENVIRONMENT == "development" else "https://auth.artfinancehub.com"

    def validate(self) -> None:
        """
        Fail fast on missing required settings.

        Raises:
            RuntimeError: Naming the first missing environment variable
        """
        if not self.DATABASE_URL:
            raise RuntimeError("DATABASE_URL environment variable is required")
        if not self.JWT_SECRET:
            raise RuntimeError("JWT_SECRET environment variable is required")
        if self.ENVIRONMENT not in ("development", "testing") and not self.RESEND_API_KEY:
            raise RuntimeError("RESEND_API_KEY environment variable is required")


# Singleton instance
settings = Settings()
