"""
Best-effort audit logging.

Audit entries are a side channel: a failed write is logged and otherwise
ignored, it never changes job counters or control flow.
"""

import logging

from planexpiry.constants import AuditActions
from planexpiry.store.base import AuditEntry, AuditLog

logger = logging.getLogger(__name__)


class BestEffortAuditLog(AuditLog):
    """Wrap an audit sink so that write failures are logged and swallowed."""

    def __init__(self, inner: AuditLog):
        self.inner = inner

    def record(self, entry: AuditEntry) -> None:
        try:
            self.inner.record(entry)
        except Exception as e:
            logger.error(f"[AUDIT] Failed to write log entry for user {entry.user_id}: {e}")


def warning_sent_entry(user_id: str, expiry_iso: str) -> AuditEntry:
    return AuditEntry(
        function_name=AuditActions.FUNCTION_NAME,
        action=AuditActions.WARNING_SENT,
        user_id=user_id,
        details=f"14-day expiry warning email sent. Plan expires {expiry_iso}.",
    )


def plan_expired_entry(user_id: str, delete_media_iso: str) -> AuditEntry:
    return AuditEntry(
        function_name=AuditActions.FUNCTION_NAME,
        action=AuditActions.PLAN_EXPIRED,
        user_id=user_id,
        details=f"Free plan expired. Media scheduled for deletion on {delete_media_iso}.",
    )
