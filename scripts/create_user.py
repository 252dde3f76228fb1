"""
Name: Staff/Admin Bootstrap Script

Responsibilities:
  - Create a marketplace account (idempotent), typically staff or admin
  - Hash passwords with Argon2
  - Store the user through the configured UserRepository (PostgreSQL)
"""

from __future__ import annotations

import argparse
import getpass
import sys

from rentalhub.crosscutting.config import get_settings
from rentalhub.identity.auth_users import hash_password
from rentalhub.identity.users import UserRole, VerificationState
from rentalhub.infrastructure.db import close_pool, init_pool
from rentalhub.infrastructure.repositories import PostgresUserRepository


def _prompt_email() -> str:
    email = input("Email: ").strip().lower()
    if not email:
        raise SystemExit("Email is required.")
    return email


def _prompt_password() -> str:
    password = getpass.getpass("Password: ")
    if not password:
        raise SystemExit("Password is required.")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        raise SystemExit("Passwords do not match.")
    return password


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Create a staff or admin account (idempotent)."
    )
    parser.add_argument("--email", help="User email (will be normalized)")
    parser.add_argument(
        "--password",
        help="User password (omit to be prompted securely)",
    )
    parser.add_argument("--name", default="", help="Display name")
    parser.add_argument(
        "--role",
        default=UserRole.STAFF.value,
        choices=[role.value for role in UserRole],
        help="User role (default: staff)",
    )
    parser.add_argument(
        "--inactive",
        action="store_true",
        help="Create user as inactive",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()
    if not settings.database_url:
        raise SystemExit("DATABASE_URL is required to create a user.")

    email = args.email.strip().lower() if args.email else _prompt_email()
    if not email:
        raise SystemExit("Email is required.")
    password = args.password or _prompt_password()

    init_pool(
        database_url=settings.database_url,
        min_size=1,
        max_size=2,
    )
    try:
        repo = PostgresUserRepository()
        existing = repo.get_user_by_email(email)
        if existing is not None:
            print(
                "User already exists: "
                f"id={existing.id} email={email} role={existing.role.value} "
                f"active={existing.is_active}"
            )
            return
        user = repo.create_user(
            email=email,
            password_hash=hash_password(password),
            role=UserRole(args.role),
            name=args.name,
            verification_state=VerificationState.VERIFIED,
            is_active=not args.inactive,
        )
        print(f"Created user: id={user.id} email={email} role={user.role.value}")
    finally:
        close_pool()


if __name__ == "__main__":
    main()
