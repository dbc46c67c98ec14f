import logging
from datetime import datetime
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from inzozi.core.config import settings
from inzozi.core.exceptions import NotFoundError
from inzozi.core.money import ZERO, parse_amount, round_money
from inzozi.db.base import commit
from inzozi.models.contribution import Contribution, ContributionStatus
from inzozi.models.member import MemberProfile

logger = logging.getLogger(__name__)


def record_contribution(
    db: Session,
    user_id: UUID,
    amount,
    payment_date: Optional[datetime] = None,
    reference: Optional[str] = None,
    status: ContributionStatus = ContributionStatus.COMPLETED
) -> Contribution:
    """Record a contribution entered by an admin."""
    amount = parse_amount(amount)
    if not db.query(MemberProfile.id).filter(MemberProfile.user_id == user_id).first():
        raise NotFoundError("Member not found")

    contribution = Contribution(
        user_id=user_id,
        amount=amount,
        payment_date=payment_date or datetime.utcnow(),
        status=status,
        reference_number=reference.strip() if reference and reference.strip() else None
    )
    db.add(contribution)
    commit(db, "record contribution")
    db.refresh(contribution)
    logger.info("Contribution %s of %s recorded for %s (%s)", contribution.id, amount, user_id, status.value)
    return contribution


def list_contributions(db: Session, user_id: Optional[UUID] = None) -> List[Contribution]:
    """Contributions, most recent payment date first."""
    query = db.query(Contribution)
    if user_id is not None:
        query = query.filter(Contribution.user_id == user_id)
    return query.order_by(Contribution.payment_date.desc()).all()


def total_contributed(db: Session, user_id: Optional[UUID] = None) -> Decimal:
    """Sum of completed contributions, for one member or the whole group."""
    query = db.query(func.coalesce(func.sum(Contribution.amount), 0)).filter(
        Contribution.status == ContributionStatus.COMPLETED
    )
    if user_id is not None:
        query = query.filter(Contribution.user_id == user_id)
    return round_money(query.scalar())


def contribution_progress(db: Session, user_id: UUID) -> dict:
    """Progress toward the fixed membership requirement, percent clamped to [0, 100]."""
    contributed = total_contributed(db, user_id)
    required = round_money(settings.REQUIRED_CONTRIBUTION)
    if required <= ZERO:
        percent = Decimal("100")
    else:
        percent = min(max(contributed / required * 100, Decimal("0")), Decimal("100"))
    return {
        "contributed": contributed,
        "required": required,
        "remaining": max(required - contributed, ZERO),
        "percent": percent.quantize(Decimal("0.1"), rounding=ROUND_DOWN),
    }
