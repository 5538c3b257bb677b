"""
Repository layer.

All SQL lives here and ONLY here. No database access outside this module.
"""

from hubauth.repos.registration_repo import RegistrationRepo, TokenStore
from hubauth.repos.user_repo import UserRepo

__all__ = [
    "RegistrationRepo",
    "TokenStore",
    "UserRepo",
]
