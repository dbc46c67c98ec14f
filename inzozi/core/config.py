from pydantic_settings import BaseSettings
from typing import List, Optional
from decimal import Decimal
from pathlib import Path

# Find .env file - check inzozi/ directory first, then project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent
APP_ENV = BASE_DIR / "inzozi" / ".env"
ROOT_ENV = BASE_DIR / ".env"

# Use inzozi/.env if it exists, otherwise try root .env
env_file = str(APP_ENV) if APP_ENV.exists() else (str(ROOT_ENV) if ROOT_ENV.exists() else ".env")


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str

    # JWT
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # SMTP
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    FROM_EMAIL: Optional[str] = None
    REPLY_TO_EMAIL: Optional[str] = None

    # Accounts
    ADMIN_SIGNUP_KEY: Optional[str] = None  # admin self-signup disabled when unset

    # Savings and loans
    REQUIRED_CONTRIBUTION: Decimal = Decimal("105000")
    DEFAULT_INTEREST_RATE: Decimal = Decimal("0.05")
    DEFAULT_INSTALLMENTS: int = 3
    LOAN_TERM_DAYS: int = 90

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    OVERDUE_SWEEP_INTERVAL_HOURS: int = 24

    # Application
    AUDIT_LOG_DIR: Optional[str] = None
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = env_file
        case_sensitive = True


settings = Settings()

# Derived paths
LOGS_DIR = Path(settings.AUDIT_LOG_DIR) if settings.AUDIT_LOG_DIR else BASE_DIR / "logs"
