"""Interactive admin account creation.

Run with `zst-create-admin` or `python -m marketplace.cli`.
"""
import argparse
import asyncio
import getpass
import logging
import sys
from typing import Callable, List, Optional

from marketplace.domain.exceptions import DomainException
from marketplace.domain.models import User
from marketplace.infrastructure.database import async_session_factory, close_db, init_db, session_scope
from marketplace.infrastructure.jwt_handler import JWTHandler
from marketplace.infrastructure.repositories_postgres import PostgresUserRepository
from marketplace.logging_config import configure_logging
from marketplace.services.auth_service import AuthService

logger = logging.getLogger(__name__)


async def create_admin(
    email: str,
    password: str,
    full_name: str,
    phone: Optional[str] = None,
    session_factory=async_session_factory,
) -> User:
    """Create the admin user in its own transaction."""
    async with session_scope(session_factory) as session:
        service = AuthService(PostgresUserRepository(session), JWTHandler())
        return await service.create_admin(email, password, full_name, phone=phone)


async def _run(args: argparse.Namespace) -> User:
    if not args.skip_init:
        await init_db()
    try:
        return await create_admin(args.email, args.password, args.full_name, phone=args.phone)
    finally:
        await close_db()


def parse_args(
    argv: Optional[List[str]] = None,
    prompt: Callable[[str], str] = input,
    prompt_secret: Callable[[str], str] = getpass.getpass,
) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a ZST admin user")
    parser.add_argument("--email", help="Admin email (prompted when omitted)")
    parser.add_argument("--full-name", dest="full_name", help="Admin full name (prompted when omitted)")
    parser.add_argument("--phone", help="Admin phone number (optional)")
    parser.add_argument("--skip-init", action="store_true", help="Do not create missing tables first")
    args = parser.parse_args(argv)

    # The password is never taken from argv
    if not args.email:
        args.email = prompt("Email: ").strip()
    args.password = prompt_secret("Password: ")
    if not args.full_name:
        args.full_name = prompt("Full Name: ").strip()
    if args.phone is None:
        args.phone = prompt("Phone (optional): ").strip() or None
    return args


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging(level="WARNING", json_logs=False)
    print("Create Admin User\n")

    args = parse_args(argv)
    if not args.email or not args.password or not args.full_name:
        print("Error: email, password and full name are required", file=sys.stderr)
        return 1

    print("\nCreating admin user...")
    try:
        user = asyncio.run(_run(args))
    except DomainException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error creating admin: {e}")
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1

    print("\nAdmin user created successfully!")
    print(f"Email: {user.email}")
    print(f"Name: {user.full_name}")
    print(f"User ID: {user.user_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
