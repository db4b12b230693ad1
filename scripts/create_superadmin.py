#!/usr/bin/env python3
"""
Script to create a superadmin account, or promote an existing user.

Usage:
    python scripts/create_superadmin.py --email admin@example.com --password secret123 --name "Admin"
"""

import asyncio
import sys
import argparse
from pathlib import Path

# Add the project root to the path so we can import leaguehub modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from leaguehub.database.db import AsyncSessionLocal, init_database, close_database  # noqa: E402
from leaguehub.services import auth_service, user_service  # noqa: E402
from leaguehub.utils.constants import MIN_PASSWORD_LENGTH  # noqa: E402


async def create_superadmin(email: str, password: str, name: str = None):
    """Create or promote a superadmin."""
    await init_database()
    async with AsyncSessionLocal() as session:
        try:
            result = await user_service.create_or_promote_superadmin(
                session,
                email=auth_service.normalize_email(email),
                password_hash=auth_service.hash_password(password),
                name=name,
            )
            user = result["user"]
            if result["created"]:
                print(f"✅ Created superadmin {user['email']} (ID {user['id']})")
            else:
                print(f"✅ Promoted {user['email']} (ID {user['id']}) to superadmin")
            return result
        except Exception as e:
            await session.rollback()
            print(f"❌ Error creating superadmin: {e}")
            raise
        finally:
            await close_database()


async def main():
    parser = argparse.ArgumentParser(description="Create or promote a superadmin account")
    parser.add_argument("--email", type=str, required=True, help="Superadmin email")
    parser.add_argument("--password", type=str, required=True, help="Superadmin password")
    parser.add_argument("--name", type=str, help="Display name (defaults to the email's local part)")

    args = parser.parse_args()

    if not auth_service.validate_email(args.email):
        parser.error("Invalid email address")
    if len(args.password) < MIN_PASSWORD_LENGTH:
        parser.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    await create_superadmin(args.email, args.password, args.name)


if __name__ == "__main__":
    asyncio.run(main())
