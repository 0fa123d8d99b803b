import enum
import datetime
from sqlalchemy import Column, Integer, String, Numeric, Date, ForeignKey, DateTime, Enum, Text
from sqlalchemy.orm import relationship
from insurfi.db.base import Base


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ClaimStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSING_PAYMENT = "processing_payment"
    PAID = "paid"


class PolicyType(str, enum.Enum):
    HOME = "home"
    CAR = "car"
    TRAVEL = "travel"


class Claim(Base):
    __tablename__ = "claims"

    id = Column(Integer, primary_key=True, index=True)
    claim_id = Column(String(32), unique=True, index=True, nullable=False)
    wallet_address = Column(String(255), index=True, nullable=False)
    policy_type = Column(Enum(PolicyType, values_callable=enum_values), index=True, nullable=False)
    policy_id = Column(Integer, nullable=False)
    claim_amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=False)
    incident_date = Column(Date, nullable=False)
    documents_count = Column(Integer, default=0, nullable=False)

    status = Column(
        Enum(ClaimStatus, values_callable=enum_values),
        default=ClaimStatus.PENDING,
        index=True,
        nullable=False,
    )
    admin_notes = Column(Text, nullable=True)
    payout_amount = Column(Numeric(15, 2), nullable=True)
    payout_date = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)

    # Bumped on every admin write; guards against concurrent reviews
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    documents = relationship(
        "ClaimDocument",
        back_populates="claim",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ClaimDocument.id",
    )


class ClaimDocument(Base):
    """
    Binary evidence attached to a claim, stored base64-encoded.
    Immutable once written; removed only together with its claim.
    """
    __tablename__ = "claim_documents"

    id = Column(Integer, primary_key=True, index=True)
    claim_id = Column(
        String(32),
        ForeignKey("claims.claim_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    document_type = Column(String(50), index=True, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_data = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    uploaded_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    claim = relationship("Claim", back_populates="documents")
