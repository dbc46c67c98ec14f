from inzozi.db.base import Base

# Import all models so Alembic can detect them
from inzozi.models.user import User
from inzozi.models.member import MemberProfile
from inzozi.models.role import AppRole, UserRole
from inzozi.models.contribution import Contribution, ContributionStatus
from inzozi.models.loan import (
    Loan,
    LoanStatus,
    LoanInstallment,
    InstallmentStatus,
    LoanPayment,
)
from inzozi.models.fine import Fine, FineStatus, FinePayment

__all__ = [
    "Base",
    "User",
    "MemberProfile",
    "AppRole",
    "UserRole",
    "Contribution",
    "ContributionStatus",
    "Loan",
    "LoanStatus",
    "LoanInstallment",
    "InstallmentStatus",
    "LoanPayment",
    "Fine",
    "FineStatus",
    "FinePayment",
]
