"""
Admin endpoints for the free plan expiry jobs.

POST /v1/admin/plan-expiry/run     - Run both jobs now
GET  /v1/admin/plan-expiry/preview - Dry run: count what a run would do
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from planexpiry.auth import require_admin_key
from planexpiry.services.expiry import JobResult, RunSummary, run_from_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin/plan-expiry", tags=["admin-plan-expiry"])


# -----------------------------------------------------------------------------
# Request / Response Models
# -----------------------------------------------------------------------------


class RunRequest(BaseModel):
    """Request to trigger a run."""

    dry_run: bool = Field(False, description="Preview only, don't send or write")


class JobResultResponse(BaseModel):
    """Per-job detail."""

    job: str
    dry_run: bool
    processed: int
    transitioned: int
    skipped: int
    failed: int
    emails_sent: int
    pages_fetched: int
    aborted: bool
    errors: list[str]


class RunResponse(BaseModel):
    """Invocation summary plus per-job detail."""

    success: bool
    warned: int
    expired: int
    errors: int
    timestamp: str
    dry_run: bool
    warning_job: JobResultResponse
    expiry_job: JobResultResponse


def _job_response(result: JobResult) -> JobResultResponse:
    return JobResultResponse(
        job=result.job,
        dry_run=result.dry_run,
        processed=result.processed,
        transitioned=result.transitioned,
        skipped=result.skipped,
        failed=result.failed,
        emails_sent=result.emails_sent,
        pages_fetched=result.pages_fetched,
        aborted=result.aborted,
        errors=result.errors,
    )


def _run_response(summary: RunSummary, dry_run: bool) -> RunResponse:
    return RunResponse(
        **summary.to_response(),
        dry_run=dry_run,
        warning_job=_job_response(summary.warning),
        expiry_job=_job_response(summary.expiry),
    )


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/run", response_model=RunResponse)
def trigger_run(
    request: RunRequest,
    _: None = Depends(require_admin_key),
) -> RunResponse:
    """
    Run the warning job and then the expiry job.

    Always returns success=true; inspect the counters to detect degraded runs.
    """
    logger.info(f"Manual plan expiry run triggered (dry_run={request.dry_run})")
    summary = run_from_settings(dry_run=request.dry_run)
    return _run_response(summary, request.dry_run)


@router.get("/preview", response_model=RunResponse)
def preview_run(
    _: None = Depends(require_admin_key),
) -> RunResponse:
    """
    Count the accounts a run would warn and expire, without side effects.
    """
    summary = run_from_settings(dry_run=True)
    return _run_response(summary, True)
