from sqlalchemy.orm import Session
from inzozi.models.role import AppRole, UserRole
from inzozi.db.base import commit
from uuid import UUID
from typing import List


def get_user_roles(db: Session, user_id: UUID) -> List[str]:
    """Get all role names assigned to a user."""
    rows = db.query(UserRole.role).filter(UserRole.user_id == user_id).all()
    return sorted(row[0].value for row in rows)


def has_role(db: Session, user_id: UUID, role: AppRole) -> bool:
    """Check for a role assignment. No row means no access."""
    return db.query(UserRole.id).filter(
        UserRole.user_id == user_id,
        UserRole.role == role
    ).first() is not None


def is_admin(db: Session, user_id: UUID) -> bool:
    return has_role(db, user_id, AppRole.ADMIN)


def assign_role(db: Session, user_id: UUID, role: AppRole, auto_commit: bool = True) -> UserRole:
    """Assign a role to a user. Assigning an existing role returns the existing row."""
    existing = db.query(UserRole).filter(
        UserRole.user_id == user_id,
        UserRole.role == role
    ).first()
    if existing:
        return existing

    user_role = UserRole(user_id=user_id, role=role)
    db.add(user_role)
    if auto_commit:
        commit(db, "assign role")
        db.refresh(user_role)
    return user_role
