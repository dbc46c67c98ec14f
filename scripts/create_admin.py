"""
Create the first admin user without going through the signup key.
Usage: python scripts/create_admin.py --email admin@inzozi.rw --password secret123 --full-name "Admin"
"""
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from inzozi.core.security import get_password_hash
from inzozi.db.base import SessionLocal
from inzozi.models.member import MemberProfile
from inzozi.models.role import AppRole
from inzozi.models.user import User
from inzozi.services.rbac import assign_role


def create_admin(email: str, password: str, full_name: str = "Admin"):
    """Create an approved user holding both the user and admin roles."""
    db = SessionLocal()
    try:
        email = email.lower()
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            # Promote instead of failing so the script can be re-run safely.
            assign_role(db, existing_user.id, AppRole.ADMIN)
            print(f"User {email} already exists; admin role ensured.")
            return

        user = User(email=email, password_hash=get_password_hash(password))
        db.add(user)
        db.flush()

        db.add(MemberProfile(user_id=user.id, full_name=full_name, is_approved=True))
        assign_role(db, user.id, AppRole.USER, auto_commit=False)
        assign_role(db, user.id, AppRole.ADMIN, auto_commit=False)

        db.commit()
        print("Admin user created successfully!")
        print(f"   Email: {email}")
        print("   Roles: user, admin")
        print("\nPlease change the password after first login!")

    except Exception as e:
        db.rollback()
        print(f"Error creating admin user: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--full-name", default="Admin", help="Display name")

    args = parser.parse_args()

    if len(args.password) < 6:
        parser.error("password must be at least 6 characters")

    create_admin(email=args.email, password=args.password, full_name=args.full_name)
