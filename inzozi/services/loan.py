"""Loan engine: applications, approval with installment schedule, payments and defaults.

Every write path runs in one session transaction. Status-changing writes are
conditional UPDATEs on the current status so that two admin sessions, or an
admin and the overdue sweep, cannot both act on the same loan.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import exists, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inzozi.core.config import settings
from inzozi.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    PartialWriteError,
    PersistenceError,
    ValidationError,
)
from inzozi.core.money import ZERO, parse_amount, round_money, split_evenly
from inzozi.db.base import commit
from inzozi.models.loan import (
    InstallmentStatus,
    Loan,
    LoanInstallment,
    LoanPayment,
    LoanStatus,
)
from inzozi.models.member import MemberProfile

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = (LoanStatus.APPROVED, LoanStatus.DEFAULTED)
UNPAID_INSTALLMENT_STATUSES = (InstallmentStatus.PENDING, InstallmentStatus.OVERDUE)

# Comparisons done in SQL tolerate float storage on SQLite; amounts are whole cents.
HALF_CENT = Decimal("0.005")

# interest_rate is Numeric(5, 4)
RATE_PLACES = Decimal("0.0001")
MAX_INSTALLMENTS = 36


def get_loan(db: Session, loan_id: UUID) -> Loan:
    loan = db.query(Loan).filter(Loan.id == loan_id).first()
    if not loan:
        raise NotFoundError("Loan not found")
    return loan


def list_loans(
    db: Session,
    status: Optional[LoanStatus] = None,
    user_id: Optional[UUID] = None
) -> List[Loan]:
    """Loans, most recent application first."""
    query = db.query(Loan)
    if status is not None:
        query = query.filter(Loan.status == status)
    if user_id is not None:
        query = query.filter(Loan.user_id == user_id)
    return query.order_by(Loan.applied_at.desc()).all()


def apply_for_loan(
    db: Session,
    user_id: UUID,
    amount,
    purpose: Optional[str],
    now: Optional[datetime] = None
) -> Loan:
    """Create a pending loan application. No schedule exists until approval."""
    amount = parse_amount(amount)
    if not purpose or not purpose.strip():
        raise ValidationError("Please enter the loan purpose")

    loan = Loan(
        user_id=user_id,
        amount=amount,
        purpose=purpose.strip(),
        status=LoanStatus.PENDING,
        applied_at=now or datetime.utcnow(),
        amount_paid=ZERO
    )
    db.add(loan)
    commit(db, "submit loan application")
    db.refresh(loan)
    logger.info("Loan %s applied for by %s: amount=%s", loan.id, user_id, amount)
    return loan


def calculate_total_payable(principal: Decimal, interest_rate: Decimal) -> Decimal:
    """Flat interest over the whole term: principal x (1 + rate)."""
    return round_money(principal * (1 + interest_rate))


def build_installment_schedule(
    total_payable: Decimal,
    installments_count: int,
    start: datetime,
    term_days: int
) -> List[Tuple[int, Decimal, datetime]]:
    """Split the total into equal installments due at equal periods spanning the term.

    Returns ``(installment_number, amount, due_date)`` tuples; installment k is due
    ``k * term_days / installments_count`` days after ``start``.
    """
    period = timedelta(days=term_days) / installments_count
    amounts = split_evenly(total_payable, installments_count)
    return [
        (number, amount, start + period * number)
        for number, amount in enumerate(amounts, start=1)
    ]


def _resolve_terms(interest_rate, installments_count) -> Tuple[Decimal, int]:
    """Rate and count to store on the loan. The rate is quantized to the column's precision
    before the total is computed, so the stored rate always reproduces the stored total.
    """
    rate = settings.DEFAULT_INTEREST_RATE if interest_rate is None else Decimal(str(interest_rate))
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise ValidationError("Interest rate must be between 0 and 1")
    rate = rate.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
    count = settings.DEFAULT_INSTALLMENTS if installments_count is None else int(installments_count)
    if count < 1 or count > MAX_INSTALLMENTS:
        raise ValidationError(f"Installment count must be between 1 and {MAX_INSTALLMENTS}")
    return rate, count


def decide_loan(
    db: Session,
    loan_id: UUID,
    approve: bool,
    notes: Optional[str] = None,
    interest_rate=None,
    installments_count: Optional[int] = None,
    now: Optional[datetime] = None
) -> Loan:
    """Approve or deny a pending loan.

    Approval stores the interest rate, total payable, due date and installment
    count explicitly and writes the installment schedule in the same transaction.
    """
    now = now or datetime.utcnow()
    notes = notes.strip() if notes and notes.strip() else None
    loan = get_loan(db, loan_id)
    if loan.status != LoanStatus.PENDING:
        raise InvalidStateError(f"Loan is already {loan.status.value}")

    if not approve:
        _transition_pending(db, loan.id, {Loan.status: LoanStatus.DENIED, Loan.admin_notes: notes})
        commit(db, "deny loan")
        db.refresh(loan)
        logger.info("Loan %s denied", loan.id)
        return loan

    rate, count = _resolve_terms(interest_rate, installments_count)
    total_payable = calculate_total_payable(loan.amount, rate)
    schedule = build_installment_schedule(total_payable, count, now, settings.LOAN_TERM_DAYS)

    _transition_pending(db, loan.id, {
        Loan.status: LoanStatus.APPROVED,
        Loan.admin_notes: notes,
        Loan.approved_at: now,
        Loan.due_date: now + timedelta(days=settings.LOAN_TERM_DAYS),
        Loan.interest_rate: rate,
        Loan.total_with_interest: total_payable,
        Loan.amount_paid: ZERO,
        Loan.installments_count: count,
    })

    try:
        db.add_all([
            LoanInstallment(
                loan_id=loan.id,
                installment_number=number,
                amount=amount,
                due_date=due_date,
                paid_amount=ZERO,
                status=InstallmentStatus.PENDING
            )
            for number, amount, due_date in schedule
        ])
        db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Installment schedule for loan %s could not be written", loan_id)
        raise PartialWriteError("Loan approval failed while writing the installment schedule", loan_id=loan_id) from e

    commit(db, "approve loan")
    db.refresh(loan)
    logger.info(
        "Loan %s approved: total=%s installments=%d of %s",
        loan.id, total_payable, count, schedule[0][1]
    )
    return loan


def _transition_pending(db: Session, loan_id: UUID, values: dict) -> None:
    """Apply ``values`` only if the loan is still pending."""
    try:
        updated = db.query(Loan).filter(
            Loan.id == loan_id,
            Loan.status == LoanStatus.PENDING
        ).update(values, synchronize_session=False)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to update loan %s", loan_id)
        raise PersistenceError("Failed to update loan") from e
    if updated != 1:
        db.rollback()
        raise InvalidStateError("Loan has already been decided")


def record_payment(
    db: Session,
    loan_id: UUID,
    amount,
    recorded_by: Optional[UUID] = None,
    now: Optional[datetime] = None
) -> Loan:
    """Record a repayment against an approved (or defaulted) loan.

    The payment is logged, allocated to the oldest unpaid installments, and the
    loan moves to ``paid`` once the total payable is covered.
    """
    now = now or datetime.utcnow()
    amount = parse_amount(amount)
    loan = get_loan(db, loan_id)
    if loan.status not in PAYABLE_STATUSES:
        raise InvalidStateError(f"Cannot record a payment against a {loan.status.value} loan")
    if amount > loan.remaining_balance:
        raise ValidationError("Payment amount cannot exceed the remaining balance")

    try:
        updated = db.query(Loan).filter(
            Loan.id == loan.id,
            Loan.status.in_(PAYABLE_STATUSES),
            Loan.amount_paid + amount <= Loan.total_with_interest + HALF_CENT
        ).update({
            Loan.amount_paid: Loan.amount_paid + amount,
            Loan.last_payment_date: now,
        }, synchronize_session=False)
        if updated != 1:
            # Another session paid or changed the loan since it was read.
            db.rollback()
            raise ValidationError("Payment amount cannot exceed the remaining balance")

        db.add(LoanPayment(loan_id=loan.id, amount=amount, paid_date=now, status="paid", recorded_by=recorded_by))
        _allocate_to_installments(db, loan.id, amount, now)

        db.query(Loan).filter(
            Loan.id == loan.id,
            Loan.status.in_(PAYABLE_STATUSES),
            Loan.amount_paid >= Loan.total_with_interest - HALF_CENT
        ).update({Loan.status: LoanStatus.PAID}, synchronize_session=False)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to record payment for loan %s", loan_id)
        raise PersistenceError("Failed to record loan payment") from e

    commit(db, "record loan payment")
    db.refresh(loan)
    logger.info("Payment of %s recorded for loan %s (paid %s of %s)", amount, loan.id, loan.amount_paid, loan.total_with_interest)
    return loan


def _allocate_to_installments(db: Session, loan_id: UUID, amount: Decimal, now: datetime) -> None:
    """Apply a payment to unpaid installments in schedule order."""
    remaining = amount
    installments = db.query(LoanInstallment).filter(
        LoanInstallment.loan_id == loan_id,
        LoanInstallment.status.in_(UNPAID_INSTALLMENT_STATUSES)
    ).order_by(LoanInstallment.installment_number).all()

    for installment in installments:
        if remaining <= ZERO:
            break
        outstanding = installment.amount - (installment.paid_amount or ZERO)
        applied = min(outstanding, remaining)
        installment.paid_amount = (installment.paid_amount or ZERO) + applied
        remaining -= applied
        if installment.paid_amount >= installment.amount:
            installment.status = InstallmentStatus.PAID
            installment.paid_date = now


def _overdue_installment_exists(now: datetime):
    return exists().where(
        LoanInstallment.loan_id == Loan.id,
        LoanInstallment.status == InstallmentStatus.PENDING,
        LoanInstallment.due_date < now
    )


def _find_overdue_candidates(db: Session, now: datetime) -> List[Loan]:
    """Approved loans with a pending installment past due. Read without locking."""
    return db.query(Loan).filter(
        Loan.status == LoanStatus.APPROVED,
        _overdue_installment_exists(now)
    ).all()


def detect_overdue_loans(db: Session, now: Optional[datetime] = None) -> List[Loan]:
    """Mark approved loans with a pending installment past its due date as defaulted.

    The owning member is deactivated. Each default is a conditional write that
    re-checks for an overdue pending installment, so a payment that lands
    between the scan and the write is never overridden. Loans already
    defaulted are skipped, which makes the sweep idempotent.
    """
    now = now or datetime.utcnow()
    has_overdue_installment = _overdue_installment_exists(now)
    candidates = _find_overdue_candidates(db, now)

    default_note = f"Loan defaulted due to overdue payments as of {now:%Y-%m-%d}"
    defaulted: List[Loan] = []
    try:
        for loan in candidates:
            updated = db.query(Loan).filter(
                Loan.id == loan.id,
                Loan.status == LoanStatus.APPROVED,
                has_overdue_installment
            ).update({
                Loan.status: LoanStatus.DEFAULTED,
                Loan.admin_notes: func.coalesce(Loan.admin_notes + "\n", "") + default_note,
            }, synchronize_session=False)
            if updated != 1:
                continue

            db.query(LoanInstallment).filter(
                LoanInstallment.loan_id == loan.id,
                LoanInstallment.status == InstallmentStatus.PENDING,
                LoanInstallment.due_date < now
            ).update({LoanInstallment.status: InstallmentStatus.OVERDUE}, synchronize_session=False)
            db.query(MemberProfile).filter(
                MemberProfile.user_id == loan.user_id
            ).update({MemberProfile.is_approved: False}, synchronize_session=False)
            defaulted.append(loan)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Overdue sweep failed")
        raise PersistenceError("Failed to record loan defaults") from e

    if not defaulted:
        return []

    commit(db, "record loan defaults")
    for loan in defaulted:
        db.refresh(loan)
    logger.info("Overdue sweep defaulted %d loan(s)", len(defaulted))
    return defaulted


def find_loans_needing_reconciliation(db: Session) -> List[Loan]:
    """Decided loans whose stored schedule does not match installments_count."""
    installment_total = db.query(
        LoanInstallment.loan_id,
        func.count(LoanInstallment.id).label("installments")
    ).group_by(LoanInstallment.loan_id).subquery()

    return db.query(Loan).outerjoin(
        installment_total, installment_total.c.loan_id == Loan.id
    ).filter(
        Loan.status.in_(PAYABLE_STATUSES + (LoanStatus.PAID,)),
        func.coalesce(installment_total.c.installments, 0) != func.coalesce(Loan.installments_count, 0)
    ).order_by(Loan.approved_at).all()
