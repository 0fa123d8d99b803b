"""
Admin session handling: bcrypt password check and opaque bearer tokens
stored in ``admin_sessions``.
"""
import datetime
import logging
import secrets
from typing import Optional, Tuple

import bcrypt
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from insurfi.core.config import settings
from insurfi.core.exceptions import AuthenticationError, ValidationError
from insurfi.models.admin import AdminSession, AdminUser
from insurfi.models.claim import utcnow
from insurfi.services.audit import AuditLog
from insurfi.services.formatting import as_utc

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # malformed stored hash
        return False


class AdminAuthService:
    def __init__(self, db: AsyncSession, session_hours: int = None):
        self.db = db
        self.session_hours = session_hours or settings.ADMIN_SESSION_HOURS
        self.audit = AuditLog(db)

    async def login(self, email: str, password: str, ip_address: Optional[str] = None) -> Tuple[AdminUser, str, datetime.datetime]:
        if not email or not password:
            raise ValidationError("Email and password are required")

        result = await self.db.execute(
            select(AdminUser).where(AdminUser.email == email, AdminUser.is_active.is_(True))
        )
        admin = result.scalars().first()
        if admin is None or not verify_password(password, admin.password_hash):
            logger.warning("Failed admin login for %s", email)
            raise AuthenticationError("Invalid credentials")

        token = secrets.token_hex(32)
        now = utcnow()
        expires_at = now + datetime.timedelta(hours=self.session_hours)
        self.db.add(AdminSession(admin_id=admin.id, session_token=token, expires_at=expires_at))
        admin.last_login = now
        self.audit.record(admin.id, "login", "session", ip_address=ip_address)
        await self.db.commit()
        logger.info("Admin %s logged in", admin.id, extra={"admin_id": admin.id})
        return admin, token, expires_at

    async def logout(self, token: str, admin_id: int, ip_address: Optional[str] = None) -> None:
        await self.db.execute(delete(AdminSession).where(AdminSession.session_token == token))
        self.audit.record(admin_id, "logout", "session", ip_address=ip_address)
        await self.db.commit()

    async def resolve(self, token: Optional[str]) -> AdminUser:
        """Admin owning an unexpired session token."""
        if not token:
            raise AuthenticationError("Access token required")
        result = await self.db.execute(
            select(AdminUser, AdminSession.expires_at)
            .join(AdminSession, AdminSession.admin_id == AdminUser.id)
            .where(AdminSession.session_token == token, AdminUser.is_active.is_(True))
        )
        row = result.first()
        if row is None or as_utc(row[1]) <= utcnow():
            raise AuthenticationError("Invalid or expired session")
        return row[0]

    async def create_admin(self, email: str, password: str, name: str, role=None) -> AdminUser:
        admin = AdminUser(email=email, password_hash=hash_password(password), name=name)
        if role is not None:
            admin.role = role
        self.db.add(admin)
        await self.db.commit()
        await self.db.refresh(admin)
        return admin
