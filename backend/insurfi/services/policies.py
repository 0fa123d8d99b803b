from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from insurfi.models.claim import PolicyType
from insurfi.models.policy import Policy


class PolicyRepository:
    """Read access to the unified policy table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, policy_id: int, policy_type: Optional[PolicyType] = None) -> Optional[Policy]:
        query = select(Policy).where(Policy.id == policy_id)
        if policy_type is not None:
            query = query.where(Policy.policy_type == PolicyType(policy_type))
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_owned(self, policy_id: int, wallet_address: str, policy_type: PolicyType) -> Optional[Policy]:
        """Policy of the given type owned by ``wallet_address``, or None."""
        result = await self.db.execute(
            select(Policy).where(
                Policy.id == policy_id,
                Policy.wallet_address == wallet_address,
                Policy.policy_type == PolicyType(policy_type),
            )
        )
        return result.scalars().first()
