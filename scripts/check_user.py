#!/usr/bin/env python3
"""
Show the identity and pending tokens for an email address.

Usage:
    python scripts/check_user.py someone@example.com
"""

import asyncio
import sys

from hubauth.config import settings
from hubauth.db import close_pool, init_pool
from hubauth.repos.registration_repo import RegistrationRepo
from hubauth.repos.user_repo import UserRepo


async def main(email: str) -> None:
    email = email.strip().lower()

    await init_pool(settings.DATABASE_URL)
    try:
        user = await UserRepo().get_by_email(email)
        pending = await RegistrationRepo().find_pending(email)
    finally:
        await close_pool()

    if user is None:
        print(f"No user for {email}")
    else:
        print(f"User {user.id}: name={user.name!r} logins={user.login_count} last_login={user.last_login_at}")

    for record in pending:
        print(f"  pending token {record.token[:10]}... expires {record.expires_at.isoformat()}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
