from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Enum as SQLEnum, Uuid, CheckConstraint, text, func
import uuid
from inzozi.db.base import Base
import enum


class ContributionStatus(str, enum.Enum):
    """Contribution status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Contribution(Base):
    """Deposit credited toward a member's membership requirement."""
    __tablename__ = "contribution"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_contribution_amount_positive"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime, nullable=False)
    status = Column(SQLEnum(ContributionStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=ContributionStatus.COMPLETED, nullable=False)
    reference_number = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())
