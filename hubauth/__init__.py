"""Passwordless email-link registration and sign-in for Art Finance Hub."""

__version__ = "0.1.0"
