import logging
from sqlalchemy.orm import Session
from inzozi.core.exceptions import NotFoundError, ValidationError
from inzozi.db.base import commit
from inzozi.models.member import MemberProfile
from inzozi.models.user import User
from uuid import UUID
from typing import List, Optional

logger = logging.getLogger(__name__)


def get_member_profile_by_user_id(
    db: Session,
    user_id: UUID
) -> Optional[MemberProfile]:
    """Get member profile by user ID."""
    return db.query(MemberProfile).filter(MemberProfile.user_id == user_id).first()


def ensure_member_profile(db: Session, user: User) -> MemberProfile:
    """Return the user's profile, creating an unapproved one on first access."""
    member = get_member_profile_by_user_id(db, user.id)
    if member:
        return member

    member = MemberProfile(
        user_id=user.id,
        full_name=user.email.split("@")[0] or "User",
        is_approved=False
    )
    db.add(member)
    commit(db, "create member profile")
    db.refresh(member)
    logger.info("Created missing member profile for user %s", user.id)
    return member


def list_members(db: Session, pending_only: bool = False) -> List[MemberProfile]:
    """List member profiles, newest first; optionally only those awaiting approval."""
    query = db.query(MemberProfile)
    if pending_only:
        query = query.filter(MemberProfile.is_approved.is_(False))
    return query.order_by(MemberProfile.created_at.desc()).all()


def set_member_approval(
    db: Session,
    user_id: UUID,
    approved: bool
) -> MemberProfile:
    """Approve or reject a member."""
    member = get_member_profile_by_user_id(db, user_id)
    if not member:
        raise NotFoundError("Member profile not found")

    member.is_approved = approved
    commit(db, "update member approval")
    db.refresh(member)
    logger.info("Member %s %s", user_id, "approved" if approved else "rejected")
    return member


def approve_member(db: Session, user_id: UUID) -> MemberProfile:
    return set_member_approval(db, user_id, True)


def reject_member(db: Session, user_id: UUID) -> MemberProfile:
    return set_member_approval(db, user_id, False)


def update_profile(
    db: Session,
    user_id: UUID,
    full_name: Optional[str] = None,
    phone: Optional[str] = None
) -> MemberProfile:
    """Self-edit of display name and phone."""
    member = get_member_profile_by_user_id(db, user_id)
    if not member:
        raise NotFoundError("Member profile not found")

    if full_name is not None:
        if not full_name.strip():
            raise ValidationError("Full name cannot be empty")
        member.full_name = full_name.strip()
    if phone is not None:
        member.phone = phone.strip() or None

    commit(db, "update profile")
    db.refresh(member)
    return member
