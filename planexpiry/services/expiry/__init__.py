"""
Free plan expiry jobs.

Two sequential batch jobs sharing one date policy and one paginated scan:
- warning_job: 14-day warning email, marks freeExpiryWarnedAt
- expiry_job: free_expired transition, media deletion schedule, notice email
- runner: runs both and builds the invocation summary
"""

from planexpiry.services.expiry.expiry_job import run_expiry_job
from planexpiry.services.expiry.runner import run_from_settings, run_plan_expiry
from planexpiry.services.expiry.types import JobResult, RunSummary
from planexpiry.services.expiry.warning_job import run_warning_job

__all__ = [
    "run_warning_job",
    "run_expiry_job",
    "run_plan_expiry",
    "run_from_settings",
    "JobResult",
    "RunSummary",
]
