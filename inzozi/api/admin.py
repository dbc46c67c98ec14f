import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from inzozi.core.audit import audit_user_action
from inzozi.core.dependencies import require_admin
from inzozi.core.email import send_loan_decision_email
from inzozi.core.exceptions import InzoziError, to_http_exception
from inzozi.db.base import get_db
from inzozi.models.fine import FineStatus
from inzozi.models.loan import Loan, LoanStatus
from inzozi.models.user import User
from inzozi.schemas.contribution import ContributionCreate, ContributionResponse
from inzozi.schemas.fine import FineCreate, FinePaymentCreate, FinePaymentResponse, FineResponse
from inzozi.schemas.loan import LoanDecision, LoanPaymentCreate, LoanResponse
from inzozi.schemas.member import AdminSummaryResponse, MemberProfileResponse
from inzozi.services.contribution import list_contributions, record_contribution
from inzozi.services.dashboard import get_admin_summary
from inzozi.services.fine import cancel_fine, fine_payment_history, issue_fine, list_fines, pay_fine
from inzozi.services.loan import (
    decide_loan,
    find_loans_needing_reconciliation,
    get_loan,
    list_loans,
    record_payment,
)
from inzozi.services.member import approve_member, get_member_profile_by_user_id, list_members, reject_member
from inzozi.services.scheduler import get_scheduler_status, reschedule_jobs, sweep_and_notify
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class SchedulerIntervalUpdate(BaseModel):
    interval_hours: int = Field(..., ge=1, le=168)


class DefaultedLoanReport(BaseModel):
    loan_id: str
    member_name: str
    loan_amount: float
    outstanding: float


def _notify_loan_decision(db: Session, loan: Loan) -> None:
    profile = get_member_profile_by_user_id(db, loan.user_id)
    member = db.query(User).filter(User.id == loan.user_id).first()
    if not member:
        return
    first_installment = loan.installments[0].amount if loan.installments else None
    send_loan_decision_email(
        to_email=member.email,
        full_name=profile.full_name if profile else member.email,
        approved=loan.status == LoanStatus.APPROVED,
        amount=float(loan.amount),
        installment_amount=float(first_installment) if first_installment is not None else None,
        notes=loan.admin_notes
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@router.get("/summary", response_model=AdminSummaryResponse)
def get_summary(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Group-wide totals (Admin only)."""
    return get_admin_summary(db)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.get("/members", response_model=List[MemberProfileResponse])
def get_members(
    pending: bool = False,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List members; ``pending=true`` shows only those awaiting approval."""
    return [MemberProfileResponse.model_validate(m) for m in list_members(db, pending_only=pending)]


@router.post("/members/{user_id}/approve", response_model=MemberProfileResponse)
def approve_member_account(
    user_id: UUID,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        member = approve_member(db, user_id)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Member approved", f"member={member.full_name}")
    return MemberProfileResponse.model_validate(member)


@router.post("/members/{user_id}/reject", response_model=MemberProfileResponse)
def reject_member_account(
    user_id: UUID,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        member = reject_member(db, user_id)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Member rejected", f"member={member.full_name}")
    return MemberProfileResponse.model_validate(member)


# ---------------------------------------------------------------------------
# Contributions
# ---------------------------------------------------------------------------

@router.get("/contributions", response_model=List[ContributionResponse])
def get_contributions(
    user_id: Optional[UUID] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return [ContributionResponse.model_validate(c) for c in list_contributions(db, user_id=user_id)]


@router.post("/contributions", response_model=ContributionResponse)
def add_contribution(
    contribution_data: ContributionCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Record a contribution on a member's behalf."""
    try:
        contribution = record_contribution(
            db,
            user_id=contribution_data.user_id,
            amount=contribution_data.amount,
            payment_date=contribution_data.payment_date,
            reference=contribution_data.reference_number,
            status=contribution_data.status
        )
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(
        db, current_user, "Contribution recorded",
        f"member={contribution.user_id} amount={contribution.amount}"
    )
    return ContributionResponse.model_validate(contribution)


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------

@router.get("/loans", response_model=List[LoanResponse])
def get_loans(
    loan_status: Optional[LoanStatus] = None,
    user_id: Optional[UUID] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All loans with their installment schedules and payments, newest first."""
    return [LoanResponse.model_validate(loan) for loan in list_loans(db, status=loan_status, user_id=user_id)]


@router.get("/loans/reconciliation", response_model=List[LoanResponse])
def get_loans_needing_reconciliation(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Decided loans whose installment rows do not match their installment count."""
    return [LoanResponse.model_validate(loan) for loan in find_loans_needing_reconciliation(db)]


@router.post("/loans/overdue-sweep", response_model=List[DefaultedLoanReport])
def run_overdue_sweep_now(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Run the overdue sweep immediately instead of waiting for the scheduler."""
    try:
        report = sweep_and_notify(db)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Overdue sweep run", f"defaulted={len(report)}")
    return report


@router.get("/loans/{loan_id}", response_model=LoanResponse)
def get_loan_details(
    loan_id: UUID,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return LoanResponse.model_validate(get_loan(db, loan_id))
    except InzoziError as e:
        raise to_http_exception(e)


@router.post("/loans/{loan_id}/decision", response_model=LoanResponse)
def decide_loan_application(
    loan_id: UUID,
    decision: LoanDecision,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Approve (building the installment schedule) or deny a pending loan."""
    try:
        loan = decide_loan(
            db,
            loan_id,
            approve=decision.approve,
            notes=decision.notes,
            interest_rate=decision.interest_rate,
            installments_count=decision.installments_count
        )
    except InzoziError as e:
        raise to_http_exception(e)

    audit_user_action(
        db, current_user, "Loan approved" if decision.approve else "Loan denied",
        f"loan={loan.id} amount={loan.amount}"
    )
    _notify_loan_decision(db, loan)
    return LoanResponse.model_validate(loan)


@router.post("/loans/{loan_id}/payments", response_model=LoanResponse)
def add_loan_payment(
    loan_id: UUID,
    payment: LoanPaymentCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        loan = record_payment(db, loan_id, payment.amount, recorded_by=current_user.id)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Loan payment recorded", f"loan={loan.id} amount={payment.amount}")
    return LoanResponse.model_validate(loan)


# ---------------------------------------------------------------------------
# Fines
# ---------------------------------------------------------------------------

@router.get("/fines", response_model=List[FineResponse])
def get_fines(
    fine_status: Optional[FineStatus] = None,
    user_id: Optional[UUID] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return [FineResponse.model_validate(f) for f in list_fines(db, user_id=user_id, status=fine_status)]


@router.post("/fines", response_model=FineResponse)
def create_fine(
    fine_data: FineCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        fine = issue_fine(db, fine_data.user_id, fine_data.amount, fine_data.reason, issued_by=current_user.id)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Fine issued", f"member={fine.user_id} amount={fine.amount}")
    return FineResponse.model_validate(fine)


@router.post("/fines/{fine_id}/payments", response_model=FineResponse)
def add_fine_payment(
    fine_id: UUID,
    payment: FinePaymentCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        fine = pay_fine(db, fine_id, payment.amount, recorded_by=current_user.id)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Fine payment recorded", f"fine={fine.id} amount={payment.amount}")
    return FineResponse.model_validate(fine)


@router.get("/fines/{fine_id}/payments", response_model=List[FinePaymentResponse])
def get_fine_payments(
    fine_id: UUID,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return [FinePaymentResponse.model_validate(p) for p in fine_payment_history(db, fine_id)]
    except InzoziError as e:
        raise to_http_exception(e)


@router.post("/fines/{fine_id}/cancel", response_model=FineResponse)
def cancel_member_fine(
    fine_id: UUID,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        fine = cancel_fine(db, fine_id)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Fine cancelled", f"fine={fine.id}")
    return FineResponse.model_validate(fine)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

@router.get("/scheduler")
def get_scheduler(current_user: User = Depends(require_admin)):
    """Overdue sweep scheduler state (Admin only)."""
    return get_scheduler_status()


@router.put("/scheduler")
def update_scheduler_interval(
    update: SchedulerIntervalUpdate,
    current_user: User = Depends(require_admin)
):
    try:
        reschedule_jobs(update.interval_hours)
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return get_scheduler_status()
