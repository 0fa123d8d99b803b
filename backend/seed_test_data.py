"""
Seed database with an admin, sample policies and claims in every status.
Performs a full clean (DROP ALL) before seeding.
"""
import asyncio
import sys
import os

# Ensure backend directory is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from datetime import date, timedelta
from decimal import Decimal

from insurfi.db.init_db import init_models
from insurfi.db.session import SessionLocal, engine
from insurfi.models.admin import AdminRole
from insurfi.models.claim import PolicyType
from insurfi.models.policy import Policy, PolicyStatus
from insurfi.schemas.claim import Attachment
from insurfi.services.admin_auth import AdminAuthService
from insurfi.services.claim_service import ClaimService

WALLET_A = "0xAAA0000000000000000000000000000000000001"
WALLET_B = "0xBBB0000000000000000000000000000000000002"


async def seed_database():
    print("[*] Resetting database...")
    await init_models(drop=True)
    print("[*] Tables recreated.")

    async with SessionLocal() as session:
        admin = await AdminAuthService(session).create_admin(
            "admin@insurfi.io", "admin123", "Admin User", AdminRole.SUPER_ADMIN
        )
        print(f"[OK] Created admin {admin.email}")

        today = date.today()
        policies = [
            Policy(
                wallet_address=WALLET_A,
                policy_type=PolicyType.HOME,
                status=PolicyStatus.ACTIVE,
                house_type="detached",
                house_address="12 Harbour Road",
                property_owner_name="Alex Doe",
                coverage_amount=Decimal("250000.00"),
                total_premium=Decimal("820.00"),
                policy_start_date=today - timedelta(days=200),
                policy_end_date=today + timedelta(days=165),
            ),
            Policy(
                wallet_address=WALLET_A,
                policy_type=PolicyType.CAR,
                status=PolicyStatus.ACTIVE,
                car_make="Toyota",
                car_model="Corolla",
                car_year=2019,
                total_premium=Decimal("540.00"),
                policy_start_date=today - timedelta(days=90),
                policy_end_date=today + timedelta(days=275),
            ),
            Policy(
                wallet_address=WALLET_B,
                policy_type=PolicyType.TRAVEL,
                status=PolicyStatus.ACTIVE,
                origin="Lisbon",
                destination="Tokyo",
                travel_start_date=today - timedelta(days=20),
                travel_end_date=today - timedelta(days=5),
                total_premium=Decimal("75.00"),
            ),
        ]
        session.add_all(policies)
        await session.commit()
        for policy in policies:
            await session.refresh(policy)
        print(f"[OK] Created {len(policies)} policies")

        service = ClaimService(session)
        home, car, travel = policies
        scenarios = [
            # (wallet, policy, amount, description, days ago, steps)
            (WALLET_A, home, "1500.00", "Roof leak after storm", 30, []),
            (WALLET_A, home, "4200.00", "Kitchen water damage", 60, [("approved", "3800.00")]),
            (WALLET_A, car, "900.00", "Rear bumper collision", 45, [("rejected", None)]),
            (WALLET_A, car, "2300.00", "Windscreen replacement", 20, [("approved", "2300.00"), ("processing_payment", None)]),
            (WALLET_B, travel, "640.00", "Lost luggage", 10, [("approved", "600.00"), ("paid", "600.00")]),
        ]
        for wallet, policy, amount, description, days_ago, steps in scenarios:
            result = await service.submit_claim(
                {
                    "wallet_address": wallet,
                    "policy_type": policy.policy_type.value,
                    "policy_id": policy.id,
                    "claim_amount": amount,
                    "description": description,
                    "incident_date": (today - timedelta(days=days_ago)).isoformat(),
                },
                [Attachment(filename="receipt.txt", content=description.encode("utf-8"), mime_type="text/plain")],
            )
            for status, payout in steps:
                notes = "Not covered by policy terms" if status == "rejected" else None
                await service.update_status(result.claim_id, status, admin.id, admin_notes=notes, payout_amount=payout)
            print(f"[OK] Claim {result.claim_id} ({description}) -> {steps[-1][0] if steps else 'pending'}")

    await engine.dispose()
    print("[OK] Database seeded.")


if __name__ == "__main__":
    asyncio.run(seed_database())
