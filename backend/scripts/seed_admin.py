"""
Seed an admin account for the dashboard.

Creates the account with the admin role, or promotes it if the email is
already registered. Safe to run multiple times.

Usage:
    python scripts/seed_admin.py --email owner@example.com --name "Store Owner"

The password defaults to "changeme123" unless --password or
ADMIN_SEED_PASSWORD is given.

Security:
    IMPORTANT: Change the default password immediately after first login!
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.core.database import async_session_maker, init_db
from app.core.permissions import ROLE_ADMIN
from app.core.security import get_password_hash
from app.repositories.user import UserRepository

DEFAULT_PASSWORD = "changeme123"


def parse_args():
    parser = argparse.ArgumentParser(description="Create or promote a dashboard admin")
    parser.add_argument("--email", required=True, help="Admin login email")
    parser.add_argument("--name", default="Admin", help="Display name (default: Admin)")
    parser.add_argument(
        "--password",
        default=os.getenv("ADMIN_SEED_PASSWORD", DEFAULT_PASSWORD),
        help="Password for a new account (ignored when promoting)",
    )
    return parser.parse_args()


async def seed_admin(email: str, name: str, password: str) -> None:
    await init_db()

    async with async_session_maker() as session:
        try:
            repo = UserRepository(session)
            existing = await repo.get_by_email(email)

            if existing:
                if existing.role == ROLE_ADMIN:
                    print(f"{existing.email} is already an admin. Skipping...")
                    return
                await repo.update_role(existing.id, ROLE_ADMIN)
                await session.commit()
                print(f"Promoted {existing.email} to admin.")
                return

            user = await repo.create_user(
                name=name,
                email=email,
                hashed_password=get_password_hash(password),
                role=ROLE_ADMIN,
            )
            await session.commit()

            print("Admin user created successfully!")
            print(f"Email: {user.email}")
            if password == DEFAULT_PASSWORD:
                print("")
                print("WARNING: Please change the default password immediately after first login!")

        except Exception as e:
            await session.rollback()
            print(f"Error creating admin user: {e}")
            raise


if __name__ == "__main__":
    args = parse_args()
    print("Seeding admin user...")
    asyncio.run(seed_admin(args.email, args.name, args.password))
    print("Done!")
