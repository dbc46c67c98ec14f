from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from inzozi.core.audit import audit_user_action
from inzozi.core.dependencies import get_current_active_user
from inzozi.core.exceptions import InzoziError, to_http_exception
from inzozi.db.base import get_db
from inzozi.models.user import User
from inzozi.schemas.contribution import ContributionResponse
from inzozi.schemas.fine import FinePaymentResponse, FineResponse
from inzozi.schemas.loan import LoanApplicationCreate, LoanResponse
from inzozi.schemas.member import ContributionProgressResponse
from inzozi.services.contribution import contribution_progress, list_contributions
from inzozi.services.fine import fine_payment_history, get_fine, list_fines
from inzozi.services.loan import apply_for_loan, list_loans
from typing import List
from uuid import UUID

router = APIRouter(prefix="/api/member", tags=["member"])


@router.get("/progress", response_model=ContributionProgressResponse)
def get_my_progress(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """How much of the required contribution I have paid."""
    return contribution_progress(db, current_user.id)


@router.get("/contributions", response_model=List[ContributionResponse])
def get_my_contributions(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return [ContributionResponse.model_validate(c) for c in list_contributions(db, user_id=current_user.id)]


@router.get("/loans", response_model=List[LoanResponse])
def get_my_loans(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """My loans with their installment schedules and payments."""
    return [LoanResponse.model_validate(loan) for loan in list_loans(db, user_id=current_user.id)]


@router.post("/loans/apply", response_model=LoanResponse)
def apply_for_my_loan(
    application: LoanApplicationCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Submit a loan application. Only approved members may apply."""
    try:
        loan = apply_for_loan(db, current_user.id, application.amount, application.purpose)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Loan applied", f"loan={loan.id} amount={loan.amount}")
    return LoanResponse.model_validate(loan)


@router.get("/fines", response_model=List[FineResponse])
def get_my_fines(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return [FineResponse.model_validate(f) for f in list_fines(db, user_id=current_user.id)]


@router.get("/fines/{fine_id}/payments", response_model=List[FinePaymentResponse])
def get_my_fine_payments(
    fine_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Payment history for one of my fines."""
    try:
        fine = get_fine(db, fine_id)
        # Someone else's fine is reported as missing.
        if fine.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fine not found")
        return [FinePaymentResponse.model_validate(p) for p in fine_payment_history(db, fine_id)]
    except InzoziError as e:
        raise to_http_exception(e)
