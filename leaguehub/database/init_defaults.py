#!/usr/bin/env python3
"""
Initialize default database values.
Run on startup: creates the initial superadmin when SUPERADMIN_EMAIL and
SUPERADMIN_PASSWORD are set.
"""

import asyncio
import logging
import os

from leaguehub.database.db import AsyncSessionLocal
from leaguehub.database.models import UserRole
from leaguehub.services import auth_service, user_service

logger = logging.getLogger(__name__)


async def init_defaults():
    """Initialize default database values."""
    email = os.getenv("SUPERADMIN_EMAIL")
    password = os.getenv("SUPERADMIN_PASSWORD")
    if not email or not password:
        logger.info("SUPERADMIN_EMAIL/SUPERADMIN_PASSWORD not set, skipping superadmin bootstrap")
        return

    async with AsyncSessionLocal() as session:
        existing = await user_service.get_user_by_email(session, email)
        if existing and existing["role"] == UserRole.SUPERADMIN.value:
            logger.info(f"✓ Superadmin already exists: {existing['email']}")
            return

        result = await user_service.create_or_promote_superadmin(
            session,
            email=auth_service.normalize_email(email),
            password_hash=auth_service.hash_password(password),
            name=os.getenv("SUPERADMIN_NAME"),
        )
        action = "Created" if result["created"] else "Promoted"
        logger.info(f"✓ {action} superadmin: {result['user']['email']}")


if __name__ == "__main__":
    asyncio.run(init_defaults())
