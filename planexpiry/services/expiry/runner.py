"""
Run both jobs in order and build the invocation summary.
"""

import json
import logging
import uuid
from datetime import UTC, datetime

from planexpiry.config import ExpiryConfig, Settings, get_settings
from planexpiry.logging_config import log_job
from planexpiry.services.email_service import EmailService
from planexpiry.services.expiry.expiry_job import run_expiry_job
from planexpiry.services.expiry.types import RunSummary
from planexpiry.services.expiry.warning_job import run_warning_job
from planexpiry.store.base import ExpiryStores

logger = logging.getLogger(__name__)


def run_plan_expiry(
    stores: ExpiryStores,
    email_service: EmailService,
    config: ExpiryConfig,
    now: datetime | None = None,
    dry_run: bool = False,
) -> RunSummary:
    """
    Run the warning job to completion, then the expiry job.

    Neither job raises; a degraded run shows up as lower counts and a
    non-zero error counter, never as a failed invocation.
    """
    now = now or datetime.now(UTC)
    run_id = uuid.uuid4().hex[:12]

    with log_job("warning", run_id=run_id):
        warning = run_warning_job(stores, email_service, config, now, dry_run=dry_run)

    with log_job("expiry", run_id=run_id):
        expiry = run_expiry_job(stores, email_service, config, now, dry_run=dry_run)

    summary = RunSummary(started_at=now, warning=warning, expiry=expiry)
    logger.info(
        f"Free plan expiry job complete: {json.dumps(summary.to_response())}",
        extra={
            "event": "run_complete",
            "warned": summary.warned,
            "expired": summary.expired,
            "errors": summary.errors,
            "dry_run": dry_run,
        },
    )
    return summary


def run_from_settings(
    settings: Settings | None = None,
    dry_run: bool = False,
    now: datetime | None = None,
) -> RunSummary:
    """Build providers, email service and policy from settings, then run."""
    from planexpiry.store.factory import get_stores

    settings = settings or get_settings()
    return run_plan_expiry(
        get_stores(settings),
        EmailService(settings),
        ExpiryConfig.from_settings(settings),
        now=now,
        dry_run=dry_run,
    )
