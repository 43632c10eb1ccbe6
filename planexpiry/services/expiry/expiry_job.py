"""
Expiry job: move free accounts past their plan duration to free_expired.

The status write and media deletion schedule happen first and are never
rolled back. The notification email afterwards is best-effort: a failed
identity lookup or send is logged and the account still counts as expired.
"""

import logging
from datetime import datetime

from planexpiry.config import ExpiryConfig
from planexpiry.constants import EmailDefaults, SubscriptionStatus, TemplateNames
from planexpiry.services.audit_service import BestEffortAuditLog, plan_expired_entry
from planexpiry.services.email_service import EmailService
from planexpiry.services.expiry.paginator import scan_candidates
from planexpiry.services.expiry.policy import expiry_filter, media_deletion_date
from planexpiry.services.expiry.types import JobResult
from planexpiry.services.template_service import render_template, resolve_template
from planexpiry.store.base import EmailTemplate, ExpiryStores, UserRecord, to_iso

logger = logging.getLogger(__name__)


def run_expiry_job(
    stores: ExpiryStores,
    email_service: EmailService,
    config: ExpiryConfig,
    now: datetime,
    dry_run: bool = False,
) -> JobResult:
    """
    Expire every eligible free plan and schedule its media for deletion.

    Args:
        stores: Provider bundle
        email_service: Outbound email
        config: Policy thresholds and batch size
        now: Reference time for this run
        dry_run: If True, count candidates without sending or writing

    Returns:
        JobResult with transitioned = accounts expired
    """
    result = JobResult(job="expiry", dry_run=dry_run)
    audit = BestEffortAuditLog(stores.audit)

    try:
        candidate_filter = expiry_filter(now, config)
        logger.info(
            f"[EXPIRY_JOB] Checking users with planStarted <= {to_iso(candidate_filter.plan_started_on_or_before)}"
        )

        template = resolve_template(stores.templates, TemplateNames.EXPIRED, config.language)
        delete_media_at = media_deletion_date(now, config)

        scan = scan_candidates(stores.users, candidate_filter, config.batch_size)
        for page in scan:
            result.pages_fetched += 1
            for user in page:
                result.processed += 1
                if dry_run:
                    result.transitioned += 1
                    continue

                try:
                    stores.users.mark_expired(user, SubscriptionStatus.FREE_EXPIRED, delete_media_at)
                    scan.mark_removed()
                    logger.info(f"[EXPIRY_JOB] Expired free plan for user {user.user_id}")

                    audit.record(plan_expired_entry(user.user_id, to_iso(delete_media_at)))

                    if template:
                        _send_expiry_notice(user, template, stores, email_service, config, result)

                    result.transitioned += 1
                except Exception as e:
                    logger.error(f"[EXPIRY_JOB] Error expiring user {user.user_id}: {e}")
                    result.record_error(f"User {user.user_id}: {e}")

    except Exception as e:
        logger.error(f"[EXPIRY_JOB] Expiry job failed: {e}", exc_info=True)
        result.aborted = True

    logger.info(
        f"[EXPIRY_JOB] Complete: {result.transitioned} expired, {result.failed} errors",
        extra={
            "event": "expiry_job_complete",
            "expired": result.transitioned,
            "errors": result.failed,
            "dry_run": dry_run,
        },
    )
    return result


def _send_expiry_notice(
    user: UserRecord,
    template: EmailTemplate,
    stores: ExpiryStores,
    email_service: EmailService,
    config: ExpiryConfig,
    result: JobResult,
) -> None:
    """Send the expiry email. Never raises for lookup or delivery failures."""
    try:
        identity = stores.identities.get_identity(user.user_id)
    except Exception as e:
        logger.error(f"[EXPIRY_JOB] Failed to fetch user {user.user_id} for expiry email: {e}")
        return

    if not identity.email:
        logger.info(f"[EXPIRY_JOB] User {user.user_id} has no email, skipping expiry notice")
        return

    values = {
        "name": identity.name or EmailDefaults.FALLBACK_NAME,
        "upgradeUrl": config.upgrade_url,
    }
    subject = render_template(template.subject or EmailDefaults.EXPIRED_SUBJECT, values)
    html = render_template(template.body_html, values)

    outcome = email_service.send_html(identity.email, subject, html)
    if outcome["status"] == "sent":
        result.emails_sent += 1
    else:
        reason = outcome.get("error") or outcome.get("reason")
        logger.error(f"[EXPIRY_JOB] Failed to send expiry email to {identity.email}: {reason}")
