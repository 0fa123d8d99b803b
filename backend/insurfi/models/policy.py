"""
Unified policy table. One row per underwritten quote, discriminated by ``policy_type``;
variant columns for the other types stay NULL.
"""
import enum
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Enum
from insurfi.db.base import Base
from insurfi.models.claim import PolicyType, enum_values, utcnow


class PolicyStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    EXPIRED = "expired"


VARIANT_FIELDS = {
    PolicyType.HOME: (
        "house_type",
        "house_address",
        "property_owner_name",
        "property_owner_email",
        "property_owner_telephone",
    ),
    PolicyType.CAR: ("car_make", "car_model", "car_year"),
    PolicyType.TRAVEL: ("origin", "destination", "travel_start_date", "travel_end_date"),
}

COMMON_FIELDS = ("coverage_amount", "total_premium", "policy_start_date", "policy_end_date")


class Policy(Base):
    __tablename__ = "policies"

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String(255), index=True, nullable=False)
    policy_type = Column(Enum(PolicyType, values_callable=enum_values), index=True, nullable=False)
    status = Column(Enum(PolicyStatus, values_callable=enum_values), default=PolicyStatus.PENDING, nullable=False)

    coverage_amount = Column(Numeric(15, 2), nullable=True)
    total_premium = Column(Numeric(15, 2), nullable=True)
    policy_start_date = Column(Date, nullable=True)
    policy_end_date = Column(Date, nullable=True)

    # home
    house_type = Column(String(50), nullable=True)
    house_address = Column(String(500), nullable=True)
    property_owner_name = Column(String(255), nullable=True)
    property_owner_email = Column(String(255), nullable=True)
    property_owner_telephone = Column(String(50), nullable=True)

    # car
    car_make = Column(String(100), nullable=True)
    car_model = Column(String(100), nullable=True)
    car_year = Column(Integer, nullable=True)

    # travel
    origin = Column(String(255), nullable=True)
    destination = Column(String(255), nullable=True)
    travel_start_date = Column(Date, nullable=True)
    travel_end_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def details(self) -> dict:
        """Snapshot of the columns that belong to this policy's variant."""
        fields = VARIANT_FIELDS[PolicyType(self.policy_type)] + COMMON_FIELDS
        snapshot = {"id": self.id, "policy_type": PolicyType(self.policy_type).value}
        for name in fields:
            snapshot[name] = getattr(self, name)
        return snapshot
