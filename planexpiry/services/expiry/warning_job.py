"""
Warning job: notify free accounts that their plan expires soon.

Handles:
- Selecting unwarned free accounts past the warning cutoff
- Rendering and sending the warning email
- Marking accounts as warned and writing the audit entry

An account is only marked warned once the email was sent, or when no
template exists at all. Accounts without an email address and accounts whose
send failed stay unmarked and are picked up again by the next run.
"""

import logging
from datetime import datetime

from planexpiry.config import ExpiryConfig
from planexpiry.constants import EmailDefaults, TemplateNames
from planexpiry.services.audit_service import BestEffortAuditLog, warning_sent_entry
from planexpiry.services.email_service import EmailService
from planexpiry.services.expiry.paginator import scan_candidates
from planexpiry.services.expiry.policy import format_long_date, plan_expiry_date, warning_filter
from planexpiry.services.expiry.types import JobResult
from planexpiry.services.template_service import render_template, resolve_template
from planexpiry.store.base import AuditLog, EmailTemplate, ExpiryStores, UserRecord, to_iso

logger = logging.getLogger(__name__)


def run_warning_job(
    stores: ExpiryStores,
    email_service: EmailService,
    config: ExpiryConfig,
    now: datetime,
    dry_run: bool = False,
) -> JobResult:
    """
    Send expiry warnings to every eligible account.

    Args:
        stores: Provider bundle
        email_service: Outbound email
        config: Policy thresholds and batch size
        now: Reference time for this run
        dry_run: If True, count candidates without sending or writing

    Returns:
        JobResult; a failure outside the per-account loop sets aborted and
        keeps the counts reached so far
    """
    result = JobResult(job="warning", dry_run=dry_run)
    audit = BestEffortAuditLog(stores.audit)

    try:
        candidate_filter = warning_filter(now, config)
        logger.info(
            f"[WARNING_JOB] Checking users with planStarted <= {to_iso(candidate_filter.plan_started_on_or_before)}"
        )

        template = resolve_template(stores.templates, TemplateNames.WARNING, config.language)

        scan = scan_candidates(stores.users, candidate_filter, config.batch_size)
        for page in scan:
            result.pages_fetched += 1
            for user in page:
                result.processed += 1
                try:
                    if _process_candidate(user, template, stores, audit, email_service, config, now, result):
                        scan.mark_removed()
                except Exception as e:
                    logger.error(f"[WARNING_JOB] Error processing warning for user {user.user_id}: {e}")
                    result.record_error(f"User {user.user_id}: {e}")

    except Exception as e:
        logger.error(f"[WARNING_JOB] Warning job failed: {e}", exc_info=True)
        result.aborted = True

    logger.info(
        f"[WARNING_JOB] Complete: {result.transitioned} warned, {result.skipped} skipped, {result.failed} errors",
        extra={
            "event": "warning_job_complete",
            "warned": result.transitioned,
            "skipped": result.skipped,
            "errors": result.failed,
            "dry_run": dry_run,
        },
    )
    return result


def _process_candidate(
    user: UserRecord,
    template: EmailTemplate | None,
    stores: ExpiryStores,
    audit: AuditLog,
    email_service: EmailService,
    config: ExpiryConfig,
    now: datetime,
    result: JobResult,
) -> bool:
    """Handle one account. Returns True once it is marked warned."""
    expiry_date = plan_expiry_date(user.plan_started, config)

    # Already past expiry: the expiry job owns this account
    if expiry_date <= now:
        result.skipped += 1
        return False

    if result.dry_run:
        result.transitioned += 1
        return False

    try:
        identity = stores.identities.get_identity(user.user_id)
    except Exception as e:
        logger.error(f"[WARNING_JOB] Failed to fetch user {user.user_id}: {e}")
        result.record_error(f"Failed to fetch user {user.user_id}: {e}")
        return False

    if not identity.email:
        logger.info(f"[WARNING_JOB] User {user.user_id} has no email, skipping warning")
        result.skipped += 1
        return False

    if template:
        values = {
            "name": identity.name or EmailDefaults.FALLBACK_NAME,
            "expiryDate": format_long_date(expiry_date),
            "upgradeUrl": config.upgrade_url,
        }
        subject = render_template(template.subject or EmailDefaults.WARNING_SUBJECT, values)
        html = render_template(template.body_html, values)

        outcome = email_service.send_html(identity.email, subject, html)
        if outcome["status"] != "sent":
            reason = outcome.get("error") or outcome.get("reason")
            logger.error(f"[WARNING_JOB] Failed to send warning email to {identity.email}: {reason}")
            result.record_error(f"Failed to send warning email to {identity.email}: {reason}")
            return False
        result.emails_sent += 1
    else:
        logger.info(f"[WARNING_JOB] No warning template found, skipping email for {identity.email}")

    stores.users.mark_warned(user, now)
    audit.record(warning_sent_entry(user.user_id, to_iso(expiry_date)))
    result.transitioned += 1
    return True
