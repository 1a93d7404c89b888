"""
Command line management for the StayHub Listing API.
Handles table creation and administrator bootstrap.

Usage:
    python -m stayhub.cli create-tables
    python -m stayhub.cli drop-tables --confirm
    python -m stayhub.cli create-admin --email admin@example.com --full-name "Site Admin"
"""

import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from stayhub.database import AsyncSessionLocal, close_db_connection, create_tables, drop_tables
from stayhub.models.account import Account
from stayhub.services.auth import AuthService
from stayhub.utils.exceptions import APIException

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_admin(
    email: str,
    password: str,
    full_name: str,
    session_factory: async_sessionmaker = AsyncSessionLocal
) -> Account:
    """
    Create an administrator account.

    Raises:
        DuplicateResourceError: If the email is already registered
        ValueError: If the email or password is invalid
    """
    async with session_factory() as session:
        return await AuthService(session).create_admin(email, password, full_name)


async def _run(coro) -> None:
    try:
        await coro
    finally:
        await close_db_connection()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="StayHub Listing API management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all database tables")

    drop_parser = subparsers.add_parser("drop-tables", help="Drop all database tables (non-production only)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping every table")

    admin_parser = subparsers.add_parser("create-admin", help="Create an administrator account")
    admin_parser.add_argument("--email", required=True, help="Administrator email")
    admin_parser.add_argument("--full-name", required=True, help="Administrator full name")
    admin_parser.add_argument("--password", help="Password; prompted for when omitted")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "create-tables":
            asyncio.run(_run(create_tables()))

        elif args.command == "drop-tables":
            if not args.confirm:
                print("Dropping tables requires the --confirm flag")
                return 1
            asyncio.run(_run(drop_tables()))

        elif args.command == "create-admin":
            password = args.password or getpass.getpass("Admin password: ")
            asyncio.run(_run(create_admin(args.email, password, args.full_name)))
            logger.info(f"Administrator {args.email} created")

    except APIException as e:
        logger.error(f"Command failed: {e.detail}")
        return 1
    except (ValueError, RuntimeError) as e:
        logger.error(f"Command failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
