import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from inzozi.core.audit import audit_user_action
from inzozi.core.dependencies import get_current_user
from inzozi.core.exceptions import InzoziError, to_http_exception
from inzozi.db.base import get_db
from inzozi.models.user import User
from inzozi.schemas.auth import UserRegister, UserLogin, Token, UserResponse, UserProfileUpdate, PasswordChange
from inzozi.services.auth import authenticate_user, change_password, create_user, create_access_token_for_user
from inzozi.services.member import ensure_member_profile, update_profile
from inzozi.services.rbac import get_user_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(db: Session, user: User) -> UserResponse:
    profile = ensure_member_profile(db, user)
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=profile.full_name,
        phone=profile.phone,
        is_approved=bool(profile.is_approved),
        roles=get_user_roles(db, user.id)
    )


@router.post("/register", response_model=UserResponse)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new user. Members wait for admin approval before they can apply for loans."""
    try:
        user = create_user(
            db=db,
            email=user_data.email,
            password=user_data.password,
            full_name=user_data.full_name,
            phone=user_data.phone,
            role=user_data.role,
            admin_key=user_data.admin_key
        )
        return _user_response(db, user)
    except InzoziError as e:
        logger.warning("Registration failed for %s: %s", user_data.email, e.message)
        raise to_http_exception(e)


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    access_token = create_access_token_for_user(user)
    audit_user_action(db, user, "Login", f"email={user.email}")
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Record logout in audit log (token invalidation is handled client-side)."""
    audit_user_action(db, current_user, "Logout", f"email={current_user.email}")
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get current user information including roles and approval state."""
    try:
        return _user_response(db, current_user)
    except InzoziError as e:
        raise to_http_exception(e)


@router.put("/profile", response_model=UserResponse)
def update_my_profile(
    profile_data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        ensure_member_profile(db, current_user)
        update_profile(db, current_user.id, full_name=profile_data.full_name, phone=profile_data.phone)
        return _user_response(db, current_user)
    except InzoziError as e:
        raise to_http_exception(e)


@router.put("/password")
def update_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        change_password(db, current_user, password_data.current_password, password_data.new_password)
    except InzoziError as e:
        raise to_http_exception(e)
    audit_user_action(db, current_user, "Password changed")
    return {"message": "Password updated successfully"}
