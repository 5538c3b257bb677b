#!/usr/bin/env python3
"""
Delete pending registrations whose 24h window has passed, and used
sign-in credential records that have expired.

Usage:
    python scripts/cleanup_expired_registrations.py

Meant for cron / Cloud Scheduler when the HTTP hook is not reachable.
Reads DATABASE_URL from the environment.
"""

import asyncio
import logging
from datetime import UTC, datetime

from hubauth.config import settings
from hubauth.db import close_pool, init_pool
from hubauth.logging_config import configure_logging
from hubauth.repos.registration_repo import RegistrationRepo
from hubauth.repos.user_repo import UserRepo
from hubauth.services.registration_service import RegistrationService

logger = logging.getLogger("cleanup_expired_registrations")


async def main() -> int:
    settings.validate()
    await init_pool(settings.DATABASE_URL)
    try:
        service = RegistrationService(RegistrationRepo(), settings)
        deleted = await service.cleanup_expired_registrations()
        purged = await UserRepo().purge_used_credentials(datetime.now(UTC))
    finally:
        await close_pool()

    logger.info("Cleanup completed: %d registrations deleted, %d used credentials purged", deleted, purged)
    return deleted


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(main())
