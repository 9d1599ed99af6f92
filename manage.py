#!/usr/bin/env python3
"""
Database management script.
Creates or drops tables and bootstraps the first administrator account.
"""

import asyncio
import sys
import argparse
import logging

from rental_api.config import settings
from rental_api.database import AsyncSessionLocal, create_tables, drop_tables
from rental_api.models.user import User, UserRole
from rental_api.repositories.user import UserRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_admin(name: str, email: str, password: str, session_factory=AsyncSessionLocal) -> User:
    """
    Create an administrator account.

    Raises:
        ValueError: If the email or password is invalid
        DuplicateResourceError: If the email is already registered
    """
    async with session_factory() as session:
        user_repo = UserRepository(session)
        admin = await user_repo.create_user({
            "name": name,
            "email": email,
            "password": password,
            "role": UserRole.ADMIN,
        })

    logger.info(f"Administrator created: {admin.email} (ID: {admin.id})")
    return admin


def main(argv=None):
    """Main CLI interface for database management."""
    parser = argparse.ArgumentParser(description="Rental Listing API database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all database tables")

    drop_parser = subparsers.add_parser("drop-tables", help="Drop all database tables (not in production)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping every table")

    admin_parser = subparsers.add_parser("create-admin", help="Create an administrator account")
    admin_parser.add_argument("--name", required=True, help="Display name")
    admin_parser.add_argument("--email", required=True, help="Login email")
    admin_parser.add_argument("--password", required=True, help="Login password")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logger.info(f"Environment: {settings.environment}")

    try:
        if args.command == "create-tables":
            asyncio.run(create_tables())

        elif args.command == "drop-tables":
            if not args.confirm:
                print("Dropping tables requires --confirm flag")
                return 1
            asyncio.run(drop_tables())

        elif args.command == "create-admin":
            asyncio.run(create_admin(args.name, args.email, args.password))

    except Exception as e:
        logger.error(f"Command failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
