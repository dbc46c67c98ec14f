"""
Run the overdue loan sweep once, e.g. from cron when the API scheduler is disabled.
Usage: python scripts/run_overdue_sweep.py
"""
import sys
import logging
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from inzozi.services.scheduler import run_overdue_sweep

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)


if __name__ == "__main__":
    report = run_overdue_sweep()
    if not report:
        print("No loans defaulted.")
    for item in report:
        print(f"Defaulted loan {item['loan_id']}: {item['member_name']}, outstanding {item['outstanding']:,.0f} RWF")
