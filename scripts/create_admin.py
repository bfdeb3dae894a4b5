#!/usr/bin/env python3
"""
Companion Marketplace — Create (or promote) an administrator account.

Admins review verification submissions and publish legal documents.  The
public registration endpoint never grants the admin role, so the first
admin has to be created from the command line.

Usage examples
--------------
  # Create a new admin account
  python scripts/create_admin.py admin@example.com --password 's3cret-pass' \\
      --first-name Site --last-name Admin

  # Promote an existing account to admin
  python scripts/create_admin.py someone@example.com --promote
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

# Ensure the project root is importable
sys.path.insert(0, ".")

from app.database import async_session_factory
from app.exceptions import MarketplaceError
from app.services.user_service import UserService


async def create_admin(args: argparse.Namespace) -> int:
    service = UserService()

    async with async_session_factory() as session:
        existing = await service.get_by_email(session, args.email)

        if existing is not None:
            if not args.promote:
                print(f"  {args.email} already exists; pass --promote to make it an admin.")
                return 1
            existing.role = "admin"
            await session.commit()
            print(f"  Promoted {existing.email} to admin.")
            return 0

        password = args.password or getpass.getpass("Password: ")
        if len(password) < 8:
            print("  Password must be at least 8 characters.")
            return 1

        try:
            user, _ = await service.register(
                session,
                email=args.email,
                password=password,
                first_name=args.first_name,
                last_name=args.last_name,
                role="admin",
            )
        except MarketplaceError as exc:
            print(f"  Could not create admin: {exc.message}")
            return 1

        await session.commit()
        print(f"  Created admin {user.email} (id={user.id}).")
        return 0


# ──────────────────────────────────────────────────────────────────────────────
# CLI entry point
# ──────────────────────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Create a Companion Marketplace administrator account.",
    )
    parser.add_argument("email", help="Email address of the admin account.")
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Account password (prompted for when omitted).",
    )
    parser.add_argument("--first-name", type=str, default="Admin")
    parser.add_argument("--last-name", type=str, default="User")
    parser.add_argument(
        "--promote",
        action="store_true",
        default=False,
        help="Promote the account to admin if it already exists.",
    )

    args = parser.parse_args()
    sys.exit(asyncio.run(create_admin(args)))


if __name__ == "__main__":
    main()
