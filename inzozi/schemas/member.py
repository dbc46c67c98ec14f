from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from uuid import UUID


class MemberProfileResponse(BaseModel):
    user_id: UUID
    full_name: str
    phone: Optional[str] = None
    is_approved: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContributionProgressResponse(BaseModel):
    contributed: float
    required: float
    remaining: float
    percent: float


class AdminSummaryResponse(BaseModel):
    total_members: int
    pending_approvals: int
    total_contributions: float
    total_loans: float
    loans_repaid: float
    pending_loans: int
    defaulted_loans: int
    outstanding_fines: float
