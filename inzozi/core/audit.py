"""Append-only monthly audit trail of logins and admin actions."""

from datetime import datetime
from sqlalchemy.orm import Session
from inzozi.core.config import LOGS_DIR
from inzozi.models.member import MemberProfile
from inzozi.models.user import User
from inzozi.services.rbac import is_admin


def write_audit_log(user_name: str, user_role: str, action: str, details: str = ""):
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    now = datetime.now()
    log_file = LOGS_DIR / f"audit_{now:%Y_%m}.log"
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(f"{now:%Y-%m-%d %H:%M:%S} | {user_role} | {user_name} | {action} | {details}\n")


def audit_user_action(db: Session, user: User, action: str, details: str = "") -> None:
    """Audit an action by ``user``, naming them by profile and highest role."""
    profile = db.query(MemberProfile).filter(MemberProfile.user_id == user.id).first()
    user_name = profile.full_name if profile else user.email
    user_role = "admin" if is_admin(db, user.id) else "user"
    write_audit_log(user_name=user_name, user_role=user_role, action=action, details=details)
