"""Fine ledger: issue fines, take partial payments, cancel.

``fine.amount_paid`` is a cached sum of the fine's payment rows. It is only
ever changed together with the insert of a payment row, in one transaction,
through a conditional UPDATE that also enforces the pending status and the
remaining balance.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inzozi.core.exceptions import InvalidStateError, NotFoundError, PersistenceError, ValidationError
from inzozi.core.money import ZERO, parse_amount
from inzozi.db.base import commit
from inzozi.models.fine import Fine, FinePayment, FineStatus
from inzozi.models.member import MemberProfile

logger = logging.getLogger(__name__)

HALF_CENT = Decimal("0.005")


def get_fine(db: Session, fine_id: UUID) -> Fine:
    fine = db.query(Fine).filter(Fine.id == fine_id).first()
    if not fine:
        raise NotFoundError("Fine not found")
    return fine


def list_fines(
    db: Session,
    user_id: Optional[UUID] = None,
    status: Optional[FineStatus] = None
) -> List[Fine]:
    """Fines, most recently issued first."""
    query = db.query(Fine)
    if user_id is not None:
        query = query.filter(Fine.user_id == user_id)
    if status is not None:
        query = query.filter(Fine.status == status)
    return query.order_by(Fine.issued_at.desc()).all()


def issue_fine(
    db: Session,
    user_id: UUID,
    amount,
    reason: Optional[str],
    issued_by: Optional[UUID] = None,
    now: Optional[datetime] = None
) -> Fine:
    amount = parse_amount(amount)
    if not reason or not reason.strip():
        raise ValidationError("Please enter a reason for the fine")
    if not db.query(MemberProfile.id).filter(MemberProfile.user_id == user_id).first():
        raise NotFoundError("Member not found")

    fine = Fine(
        user_id=user_id,
        amount=amount,
        description=reason.strip(),
        status=FineStatus.PENDING,
        amount_paid=ZERO,
        issued_at=now or datetime.utcnow(),
        issued_by=issued_by
    )
    db.add(fine)
    commit(db, "issue fine")
    db.refresh(fine)
    logger.info("Fine %s of %s issued to %s", fine.id, amount, user_id)
    return fine


def pay_fine(
    db: Session,
    fine_id: UUID,
    amount,
    recorded_by: Optional[UUID] = None,
    now: Optional[datetime] = None
) -> Fine:
    """Apply a partial payment. The fine becomes ``paid`` once fully covered."""
    now = now or datetime.utcnow()
    amount = parse_amount(amount)
    fine = get_fine(db, fine_id)
    if fine.status != FineStatus.PENDING:
        raise InvalidStateError(f"Cannot pay a {fine.status.value} fine")
    if amount > fine.remaining_amount:
        raise ValidationError("Payment amount cannot exceed the remaining balance")

    new_total = Fine.amount_paid + amount
    settles = new_total >= Fine.amount - HALF_CENT
    try:
        updated = db.query(Fine).filter(
            Fine.id == fine_id,
            Fine.status == FineStatus.PENDING,
            new_total <= Fine.amount + HALF_CENT
        ).update({
            Fine.amount_paid: new_total,
            Fine.status: case((settles, FineStatus.PAID.value), else_=FineStatus.PENDING.value),
            Fine.paid_at: case((settles, now), else_=None),
        }, synchronize_session=False)
        if updated != 1:
            # Changed by another session since it was read.
            db.rollback()
            fine = get_fine(db, fine_id)
            if fine.status != FineStatus.PENDING:
                raise InvalidStateError(f"Cannot pay a {fine.status.value} fine")
            raise ValidationError("Payment amount cannot exceed the remaining balance")

        db.add(FinePayment(fine_id=fine_id, amount=amount, paid_at=now, recorded_by=recorded_by))
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to record payment for fine %s", fine_id)
        raise PersistenceError("Failed to record fine payment") from e

    commit(db, "record fine payment")
    db.refresh(fine)
    logger.info("Fine %s payment of %s recorded (paid %s of %s)", fine.id, amount, fine.amount_paid, fine.amount)
    return fine


def cancel_fine(db: Session, fine_id: UUID) -> Fine:
    """Cancel a pending fine. Paid and cancelled fines are final."""
    fine = get_fine(db, fine_id)
    if fine.status != FineStatus.PENDING:
        raise InvalidStateError(f"Only pending fines can be cancelled; this fine is {fine.status.value}")

    try:
        updated = db.query(Fine).filter(
            Fine.id == fine_id,
            Fine.status == FineStatus.PENDING
        ).update({Fine.status: FineStatus.CANCELLED}, synchronize_session=False)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to cancel fine %s", fine_id)
        raise PersistenceError("Failed to cancel fine") from e
    if updated != 1:
        db.rollback()
        raise InvalidStateError("Fine is no longer pending")

    commit(db, "cancel fine")
    db.refresh(fine)
    logger.info("Fine %s cancelled", fine.id)
    return fine


def fine_payment_history(db: Session, fine_id: UUID) -> List[FinePayment]:
    """Payments against a fine, most recent first."""
    get_fine(db, fine_id)
    return db.query(FinePayment).filter(
        FinePayment.fine_id == fine_id
    ).order_by(FinePayment.paid_at.desc(), FinePayment.created_at.desc()).all()
