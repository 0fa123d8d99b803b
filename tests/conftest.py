"""Shared test fixtures for the claims backend test suite."""
import os
import tempfile

# Point the app at a throwaway SQLite file and disable pooling so each event
# loop gets fresh connections. Must be set before any insurfi import.
_DB_DIR = tempfile.mkdtemp(prefix="insurfi-tests-")
os.environ["SQLALCHEMY_DATABASE_URI"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'claims.db')}"
os.environ["DB_POOL_SIZE"] = "0"

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.future import select

from insurfi.db.init_db import init_models
from insurfi.db.session import SessionLocal
from insurfi.models.claim import Claim, ClaimDocument, PolicyType
from insurfi.models.policy import Policy, PolicyStatus
from insurfi.schemas.claim import Attachment
from insurfi.services.admin_auth import hash_password
from insurfi.models.admin import AdminRole, AdminUser

WALLET_A = "0xAAA0000000000000000000000000000000000001"
WALLET_B = "0xBBB0000000000000000000000000000000000002"
HOME_POLICY_ID = 7
CAR_POLICY_ID = 8
ADMIN_EMAIL = "admin@insurfi.io"
ADMIN_PASSWORD = "correct horse"

# bcrypt is slow by design; hash once per run
_ADMIN_HASH = hash_password(ADMIN_PASSWORD)


def make_attachment(name: str = "photo1.jpg", size: int = 1024, mime_type: str = "image/jpeg") -> Attachment:
    return Attachment(filename=name, content=b"\x01" * size, mime_type=mime_type)


def claim_payload(**overrides) -> dict:
    payload = {
        "wallet_address": WALLET_A,
        "policy_type": "home",
        "policy_id": str(HOME_POLICY_ID),
        "claim_amount": "1500.00",
        "description": "roof leak",
        "incident_date": "2024-03-01",
    }
    payload.update(overrides)
    return payload


async def seed_reference_data(session) -> AdminUser:
    """Admin account plus a home policy (id 7) and car policy (id 8) owned by WALLET_A."""
    admin = AdminUser(email=ADMIN_EMAIL, password_hash=_ADMIN_HASH, name="Admin User", role=AdminRole.SUPER_ADMIN)
    session.add(admin)
    session.add_all([
        Policy(
            id=HOME_POLICY_ID,
            wallet_address=WALLET_A,
            policy_type=PolicyType.HOME,
            status=PolicyStatus.ACTIVE,
            house_type="detached",
            house_address="12 Harbour Road",
            coverage_amount=Decimal("250000.00"),
            total_premium=Decimal("820.00"),
            policy_start_date=date(2024, 1, 1),
            policy_end_date=date(2024, 12, 31),
        ),
        Policy(
            id=CAR_POLICY_ID,
            wallet_address=WALLET_A,
            policy_type=PolicyType.CAR,
            status=PolicyStatus.ACTIVE,
            car_make="Toyota",
            car_model="Corolla",
            car_year=2019,
        ),
    ])
    await session.commit()
    await session.refresh(admin)
    return admin


async def fetch_claim(session, claim_id: str) -> Claim:
    result = await session.execute(
        select(Claim).where(Claim.claim_id == claim_id).execution_options(populate_existing=True)
    )
    return result.scalars().one()


async def fetch_documents(session, claim_id: str):
    result = await session.execute(select(ClaimDocument).where(ClaimDocument.claim_id == claim_id))
    return result.scalars().all()


@pytest_asyncio.fixture
async def db():
    """Fresh schema and an open session."""
    await init_models(drop=True)
    async with SessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def admin(db):
    return await seed_reference_data(db)


@pytest.fixture
def service(db, admin):
    from insurfi.services.claim_service import ClaimService
    return ClaimService(db)
