from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from inzozi.core.exceptions import InzoziError, to_http_exception
from inzozi.core.security import decode_access_token
from inzozi.db.base import get_db
from inzozi.models.member import MemberProfile
from inzozi.models.user import User
from inzozi.services.member import ensure_member_profile
from inzozi.services.rbac import is_admin
import uuid

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id_str: str = payload.get("sub")
    if user_id_str is None:
        raise credentials_exception

    # Convert string UUID to UUID object
    try:
        user_id = uuid.UUID(user_id_str)
    except (ValueError, TypeError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception

    return user


async def get_current_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> MemberProfile:
    """Current user's member profile, created on first access."""
    try:
        return ensure_member_profile(db, current_user)
    except InzoziError as e:
        raise to_http_exception(e)


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
    profile: MemberProfile = Depends(get_current_profile)
) -> User:
    """Get current active user (approved)."""
    if profile.is_approved is not True:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is awaiting admin approval"
        )
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    """Require an admin role assignment. Users without one are refused."""
    if not is_admin(db, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User does not have required role: admin"
        )
    return current_user
