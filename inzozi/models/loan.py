from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Integer, Enum as SQLEnum, Text, Uuid, CheckConstraint, text, func
from sqlalchemy.orm import relationship
import uuid
from inzozi.db.base import Base
import enum
from decimal import Decimal


class LoanStatus(str, enum.Enum):
    """Loan status.

    pending -> approved | denied; approved -> defaulted (overdue sweep);
    approved | defaulted -> paid once amount_paid reaches total_with_interest.
    """
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    DEFAULTED = "defaulted"
    PAID = "paid"


class InstallmentStatus(str, enum.Enum):
    """Loan installment status."""
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class Loan(Base):
    """Loan application and, once approved, its repayment totals."""
    __tablename__ = "loan"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_loan_amount_positive"),
        CheckConstraint("amount_paid >= 0", name="ck_loan_amount_paid_non_negative"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    purpose = Column(Text, nullable=False)
    status = Column(SQLEnum(LoanStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=LoanStatus.PENDING, nullable=False, index=True)
    applied_at = Column(DateTime, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    admin_notes = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=True)
    interest_rate = Column(Numeric(5, 4), nullable=True)
    total_with_interest = Column(Numeric(12, 2), nullable=True)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    last_payment_date = Column(DateTime, nullable=True)
    installments_count = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    installments = relationship("LoanInstallment", back_populates="loan", order_by="LoanInstallment.installment_number")
    payments = relationship("LoanPayment", back_populates="loan", order_by="desc(LoanPayment.paid_date)")

    @property
    def remaining_balance(self) -> Decimal:
        if self.total_with_interest is None:
            return Decimal("0.00")
        return self.total_with_interest - (self.amount_paid or Decimal("0.00"))


class LoanInstallment(Base):
    """One scheduled repayment of an approved loan."""
    __tablename__ = "loan_installment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loan.id"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    due_date = Column(DateTime, nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    paid_date = Column(DateTime, nullable=True)
    status = Column(SQLEnum(InstallmentStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=InstallmentStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    loan = relationship("Loan", back_populates="installments")


class LoanPayment(Base):
    """Append-only log of payments recorded against a loan."""
    __tablename__ = "loan_payment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loan.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="paid")
    recorded_by = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=True)

    # Relationships
    loan = relationship("Loan", back_populates="payments")
