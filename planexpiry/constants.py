"""
Centralized constants for the free plan expiry job.

Values that can be tuned per deployment live in config.Settings; the ones
here are part of the data contract with the user store and template store.
"""


class PlanDefaults:
    """Default plan lifecycle thresholds."""

    FREE_PLAN_DURATION_DAYS = 183       # ~6 months
    WARNING_DAYS_BEFORE = 14
    MEDIA_GRACE_PERIOD_DAYS = 183       # 6 months before media deletion
    BATCH_SIZE = 100


class PlanTier:
    FREE = "free"


class SubscriptionStatus:
    """Values of the subscriptionStatus document field."""

    ACTIVE = "active"
    FREE_EXPIRED = "free_expired"
    ARCHIVED = "archived"

    # Accounts in these states are never picked up by the expiry job
    TERMINAL = ("free_expired", "archived")


class TemplateNames:
    """Logical names of the notification templates."""

    WARNING = "free-plan-expiring"
    EXPIRED = "free-plan-expired"
    LANGUAGE = "en"


class EmailDefaults:
    FROM_ADDRESS = "TheBigDayPage <noreply@thebigdaypage.com>"
    WARNING_SUBJECT = "Your free plan expires in 14 days"
    EXPIRED_SUBJECT = "Your free plan has expired"
    FALLBACK_NAME = "there"


class AuditActions:
    FUNCTION_NAME = "tbdp-freeplanexpiry"
    WARNING_SENT = "warning_sent"
    PLAN_EXPIRED = "plan_expired"


DEFAULT_SITE_URL = "https://thebigdaypage.com"
UPGRADE_PATH = "/plans"
