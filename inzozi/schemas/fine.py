from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from inzozi.models.fine import FineStatus


class FineCreate(BaseModel):
    user_id: UUID = Field(..., description="Member being fined")
    amount: Decimal = Field(..., description="Fine amount in RWF")
    reason: str = Field(..., description="Why the fine was issued")


class FinePaymentCreate(BaseModel):
    amount: Decimal = Field(..., description="Amount paid in RWF")


class FineResponse(BaseModel):
    id: UUID
    user_id: UUID
    amount: float
    description: str
    status: FineStatus
    amount_paid: float
    remaining_amount: float
    issued_at: datetime
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FinePaymentResponse(BaseModel):
    id: UUID
    fine_id: UUID
    amount: float
    paid_at: datetime

    class Config:
        from_attributes = True
