"""
Date arithmetic and selection predicates for the free plan lifecycle.

Everything here is pure: callers pass `now` and an ExpiryConfig.
"""

from datetime import datetime, timedelta

from planexpiry.config import ExpiryConfig
from planexpiry.constants import PlanTier, SubscriptionStatus
from planexpiry.store.base import CandidateFilter


def warning_cutoff(now: datetime, config: ExpiryConfig) -> datetime:
    """Latest plan start that qualifies for the pre-expiry warning."""
    return now - timedelta(days=config.warning_cutoff_days)


def expiry_cutoff(now: datetime, config: ExpiryConfig) -> datetime:
    """Latest plan start that qualifies for the expiry transition."""
    return now - timedelta(days=config.plan_duration_days)


def plan_expiry_date(plan_started: datetime, config: ExpiryConfig) -> datetime:
    return plan_started + timedelta(days=config.plan_duration_days)


def media_deletion_date(now: datetime, config: ExpiryConfig) -> datetime:
    return now + timedelta(days=config.media_grace_days)


def warning_filter(now: datetime, config: ExpiryConfig) -> CandidateFilter:
    """Free accounts past the warning cutoff that were never warned."""
    return CandidateFilter(
        plan=PlanTier.FREE,
        plan_started_on_or_before=warning_cutoff(now, config),
        require_unwarned=True,
    )


def expiry_filter(now: datetime, config: ExpiryConfig) -> CandidateFilter:
    """Free accounts past the expiry cutoff that are not expired or archived yet."""
    return CandidateFilter(
        plan=PlanTier.FREE,
        plan_started_on_or_before=expiry_cutoff(now, config),
        excluded_statuses=SubscriptionStatus.TERMINAL,
    )


def format_long_date(value: datetime) -> str:
    """Long US date, e.g. 'April 2, 2026'."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"
