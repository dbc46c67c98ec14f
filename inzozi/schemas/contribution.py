from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from inzozi.models.contribution import ContributionStatus


class ContributionCreate(BaseModel):
    """Contribution entered by an admin on a member's behalf."""
    user_id: UUID = Field(..., description="Member the contribution is credited to")
    amount: Decimal = Field(..., description="Amount in RWF")
    payment_date: Optional[datetime] = Field(None, description="Defaults to now")
    reference_number: Optional[str] = None
    status: ContributionStatus = ContributionStatus.COMPLETED


class ContributionResponse(BaseModel):
    id: UUID
    user_id: UUID
    amount: float
    payment_date: datetime
    status: ContributionStatus
    reference_number: Optional[str] = None

    class Config:
        from_attributes = True
