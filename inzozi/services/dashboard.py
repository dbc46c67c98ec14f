from sqlalchemy import func
from sqlalchemy.orm import Session
from inzozi.core.money import round_money
from inzozi.models.fine import Fine, FineStatus
from inzozi.models.loan import Loan, LoanStatus
from inzozi.models.member import MemberProfile
from inzozi.services.contribution import total_contributed


def get_admin_summary(db: Session) -> dict:
    """Group-wide figures for the admin dashboard."""
    lent_statuses = (LoanStatus.APPROVED, LoanStatus.DEFAULTED, LoanStatus.PAID)

    total_members = db.query(func.count(MemberProfile.id)).scalar() or 0
    pending_approvals = db.query(func.count(MemberProfile.id)).filter(
        MemberProfile.is_approved.is_(False)
    ).scalar() or 0
    total_loans = db.query(func.coalesce(func.sum(Loan.amount), 0)).filter(
        Loan.status.in_(lent_statuses)
    ).scalar()
    loans_repaid = db.query(func.coalesce(func.sum(Loan.amount_paid), 0)).filter(
        Loan.status.in_(lent_statuses)
    ).scalar()
    pending_loans = db.query(func.count(Loan.id)).filter(
        Loan.status == LoanStatus.PENDING
    ).scalar() or 0
    defaulted_loans = db.query(func.count(Loan.id)).filter(
        Loan.status == LoanStatus.DEFAULTED
    ).scalar() or 0
    outstanding_fines = db.query(
        func.coalesce(func.sum(Fine.amount - Fine.amount_paid), 0)
    ).filter(Fine.status == FineStatus.PENDING).scalar()

    return {
        "total_members": total_members,
        "pending_approvals": pending_approvals,
        "total_contributions": total_contributed(db),
        "total_loans": round_money(total_loans),
        "loans_repaid": round_money(loans_repaid),
        "pending_loans": pending_loans,
        "defaulted_loans": defaulted_loans,
        "outstanding_fines": round_money(outstanding_fines),
    }
