"""Background scheduler for the overdue-loan sweep."""

import logging
from datetime import datetime
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from inzozi.core.config import settings
from inzozi.core.email import send_overdue_report
from inzozi.db.base import SessionLocal
from inzozi.models.member import MemberProfile
from inzozi.models.role import AppRole, UserRole
from inzozi.models.user import User
from inzozi.services.loan import detect_overdue_loans

logger = logging.getLogger(__name__)

scheduler: AsyncIOScheduler | None = None

JOB_ID = "overdue_loan_sweep"


def _describe_defaults(db, loans) -> List[dict]:
    """Member name and balance of each newly defaulted loan, for the report email."""
    described: List[dict] = []
    for loan in loans:
        member = db.query(MemberProfile).filter(MemberProfile.user_id == loan.user_id).first()
        described.append({
            "loan_id": str(loan.id),
            "member_name": member.full_name if member else "Unknown",
            "loan_amount": float(loan.amount),
            "outstanding": float(loan.remaining_balance),
        })
    return described


def _admin_emails(db) -> List[str]:
    admins = db.query(User).join(UserRole, UserRole.user_id == User.id).filter(
        UserRole.role == AppRole.ADMIN,
    ).all()
    return [a.email for a in admins if a.email]


def sweep_and_notify(db, now: Optional[datetime] = None) -> List[dict]:
    """Default overdue loans and email admins about them. Returns the report rows."""
    defaulted = detect_overdue_loans(db, now=now)
    if not defaulted:
        return []

    report = _describe_defaults(db, defaulted)
    admin_emails = _admin_emails(db)
    if admin_emails:
        send_overdue_report(to_emails=admin_emails, defaulted_loans=report)
    return report


def run_overdue_sweep() -> List[dict]:
    """Run one sweep in its own session.

    Errors are logged and swallowed so the scheduler keeps running; the next
    interval retries from scratch.
    """
    db = SessionLocal()
    try:
        return sweep_and_notify(db)
    except Exception:
        db.rollback()
        logger.exception("Error in overdue loan sweep")
        return []
    finally:
        db.close()


# ---------------------------------------------------------------------------
# Scheduler lifecycle helpers
# ---------------------------------------------------------------------------

def start_scheduler() -> None:
    """Create and start the background scheduler."""
    global scheduler
    interval = settings.OVERDUE_SWEEP_INTERVAL_HOURS

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_overdue_sweep,
        trigger=IntervalTrigger(hours=interval),
        id=JOB_ID,
        name="Default loans with overdue installments",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Background scheduler started with interval=%d hours", interval)


def stop_scheduler() -> None:
    """Shut down the background scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
        scheduler = None


def reschedule_jobs(new_interval_hours: int) -> None:
    """Change the sweep interval at runtime."""
    if not scheduler or not scheduler.running:
        raise RuntimeError("Scheduler is not running")

    scheduler.reschedule_job(JOB_ID, trigger=IntervalTrigger(hours=new_interval_hours))
    logger.info("Overdue sweep rescheduled to interval=%d hours", new_interval_hours)


def get_scheduler_status() -> dict:
    """Return current scheduler state for the status API."""
    if not scheduler or not scheduler.running:
        return {"running": False, "interval_hours": None, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        })

    current_interval = settings.OVERDUE_SWEEP_INTERVAL_HOURS
    job = scheduler.get_job(JOB_ID)
    if job and hasattr(job.trigger, "interval"):
        current_interval = int(job.trigger.interval.total_seconds() / 3600)

    return {
        "running": True,
        "interval_hours": current_interval,
        "jobs": jobs,
    }
