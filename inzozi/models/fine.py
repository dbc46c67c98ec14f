from sqlalchemy import Column, ForeignKey, DateTime, Numeric, Enum as SQLEnum, Text, Uuid, CheckConstraint, text, func
from sqlalchemy.orm import relationship
import uuid
from inzozi.db.base import Base
import enum
from decimal import Decimal


class FineStatus(str, enum.Enum):
    """Fine status."""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Fine(Base):
    """Penalty charged against a member, payable in parts."""
    __tablename__ = "fine"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_fine_amount_positive"),
        CheckConstraint("amount_paid >= 0 AND amount_paid <= amount", name="ck_fine_amount_paid_bounds"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(SQLEnum(FineStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=FineStatus.PENDING, nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    issued_at = Column(DateTime, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    issued_by = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=True)
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    payments = relationship("FinePayment", back_populates="fine", order_by="desc(FinePayment.paid_at)")

    @property
    def remaining_amount(self) -> Decimal:
        return self.amount - (self.amount_paid or Decimal("0.00"))


class FinePayment(Base):
    """Append-only partial payment against a fine."""
    __tablename__ = "fine_payment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    fine_id = Column(Uuid(as_uuid=True), ForeignKey("fine.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_at = Column(DateTime, nullable=False)
    recorded_by = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    fine = relationship("Fine", back_populates="payments")
