from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from insurfi.models.audit import AdminActivity


class AuditLog:
    """Admin activity trail. Entries join the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def record(
        self,
        admin_id: int,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> AdminActivity:
        entry = AdminActivity(
            admin_id=admin_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
        )
        self.db.add(entry)
        return entry

    async def for_resource(self, resource_type: str, resource_id: str) -> List[AdminActivity]:
        result = await self.db.execute(
            select(AdminActivity)
            .where(AdminActivity.resource_type == resource_type, AdminActivity.resource_id == resource_id)
            .order_by(AdminActivity.created_at, AdminActivity.id)
        )
        return result.scalars().all()
