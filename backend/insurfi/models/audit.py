"""
Database models for wallet notifications and the admin activity trail.
"""
import enum
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, JSON, Text
from insurfi.db.base import Base
from insurfi.models.claim import utcnow


class NotificationType(str, enum.Enum):
    CLAIM_SUBMITTED = "claim_submitted"
    NEW_CLAIM = "new_claim"
    CLAIM_UPDATE = "claim_update"
    PAYMENT_PROCESSED = "payment_processed"
    DOCUMENT_UPLOADED = "document_uploaded"


class Notification(Base):
    """
    User-facing message addressed to a wallet.
    The admin channel uses the literal wallet address ``"admin"``.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String(255), index=True, nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class AdminActivity(Base):
    """
    Audit trail of every state-changing admin action.
    Enables replay and compliance tracking.
    """
    __tablename__ = "admin_activity_log"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, ForeignKey("admin_users.id", ondelete="CASCADE"), index=True, nullable=False)
    action = Column(String(100), index=True, nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(50), nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)
