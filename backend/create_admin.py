"""Quick script to create an admin account for the review panel.

    python create_admin.py admin@insurfi.io 'secret' "Admin User"
"""
import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy.future import select

from insurfi.db.init_db import init_models
from insurfi.db.session import SessionLocal, engine
from insurfi.models.admin import AdminRole, AdminUser
from insurfi.services.admin_auth import AdminAuthService


async def create_admin(email: str, password: str, name: str, role: AdminRole) -> None:
    await init_models()
    async with SessionLocal() as session:
        result = await session.execute(select(AdminUser).where(AdminUser.email == email))
        if result.scalar_one_or_none():
            print(f"[OK] Admin {email} already exists")
            return
        admin = await AdminAuthService(session).create_admin(email, password, name, role)
        print(f"[OK] Created admin {admin.email} (id={admin.id}, role={admin.role.value})")
    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("name", nargs="?", default="Admin User")
    parser.add_argument("--role", choices=[r.value for r in AdminRole], default=AdminRole.SUPER_ADMIN.value)
    args = parser.parse_args()
    asyncio.run(create_admin(args.email, args.password, args.name, AdminRole(args.role)))


if __name__ == "__main__":
    main()
