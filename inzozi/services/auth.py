import hmac
import logging
from datetime import timedelta
from typing import Optional
from sqlalchemy.orm import Session
from inzozi.core.config import settings
from inzozi.core.exceptions import ValidationError
from inzozi.core.security import verify_password, get_password_hash, create_access_token
from inzozi.db.base import commit
from inzozi.models.member import MemberProfile
from inzozi.models.role import AppRole
from inzozi.models.user import User
from inzozi.services.rbac import assign_role

logger = logging.getLogger(__name__)


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate user by email and password."""
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user:
        logger.debug("User not found: %s", email)
        return None

    if not verify_password(password, user.password_hash):
        logger.debug("Password verification failed for user: %s", email)
        return None

    return user


def _check_admin_key(admin_key: Optional[str]) -> None:
    if not settings.ADMIN_SIGNUP_KEY:
        raise ValidationError("Admin registration is disabled")
    if not admin_key or not hmac.compare_digest(admin_key, settings.ADMIN_SIGNUP_KEY):
        raise ValidationError("Invalid admin key")


def create_user(
    db: Session,
    email: str,
    password: str,
    full_name: str,
    phone: Optional[str] = None,
    role: AppRole = AppRole.USER,
    admin_key: Optional[str] = None
) -> User:
    """Create a user with its member profile and role assignment.

    Members start unapproved. Admins must present the configured signup key
    and are approved immediately.
    """
    email = email.lower()
    logger.info("Starting user registration for email: %s", email)

    if not password or len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if not full_name or not full_name.strip():
        raise ValidationError("Full name is required")
    if role == AppRole.ADMIN:
        _check_admin_key(admin_key)

    if db.query(User).filter(User.email == email).first():
        logger.warning("Registration attempt with existing email: %s", email)
        raise ValidationError("Email already registered")

    user = User(email=email, password_hash=get_password_hash(password))
    db.add(user)
    db.flush()  # Get user.id

    db.add(MemberProfile(
        user_id=user.id,
        full_name=full_name.strip(),
        phone=phone.strip() if phone else None,
        is_approved=role == AppRole.ADMIN
    ))
    assign_role(db, user.id, AppRole.USER, auto_commit=False)
    if role == AppRole.ADMIN:
        assign_role(db, user.id, AppRole.ADMIN, auto_commit=False)

    commit(db, "register user")
    db.refresh(user)
    logger.info("User registration completed for %s (role=%s)", email, role.value)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    if not new_password or len(new_password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    user.password_hash = get_password_hash(new_password)
    commit(db, "change password")


def create_access_token_for_user(user: User) -> str:
    return create_access_token(str(user.id), timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
