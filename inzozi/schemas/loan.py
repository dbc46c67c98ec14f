from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from inzozi.models.loan import InstallmentStatus, LoanStatus


class LoanApplicationCreate(BaseModel):
    amount: Decimal = Field(..., description="Requested principal in RWF")
    purpose: str = Field(..., description="What the loan is for")


class LoanDecision(BaseModel):
    """Admin decision on a pending loan."""
    approve: bool
    notes: Optional[str] = None
    interest_rate: Optional[Decimal] = Field(None, description="Flat rate over the term; defaults to 0.05")
    installments_count: Optional[int] = Field(None, ge=1, le=36, description="Defaults to 3")


class LoanPaymentCreate(BaseModel):
    amount: Decimal = Field(..., description="Amount paid in RWF")


class LoanInstallmentResponse(BaseModel):
    id: UUID
    installment_number: int
    amount: float
    due_date: datetime
    paid_amount: float
    paid_date: Optional[datetime] = None
    status: InstallmentStatus

    class Config:
        from_attributes = True


class LoanPaymentResponse(BaseModel):
    id: UUID
    amount: float
    paid_date: datetime
    status: str

    class Config:
        from_attributes = True


class LoanResponse(BaseModel):
    id: UUID
    user_id: UUID
    amount: float
    purpose: str
    status: LoanStatus
    applied_at: datetime
    approved_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    due_date: Optional[datetime] = None
    interest_rate: Optional[float] = None
    total_with_interest: Optional[float] = None
    amount_paid: float
    remaining_balance: float
    last_payment_date: Optional[datetime] = None
    installments_count: Optional[int] = None
    installments: List[LoanInstallmentResponse] = []
    payments: List[LoanPaymentResponse] = []

    class Config:
        from_attributes = True
