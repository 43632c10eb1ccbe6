# planexpiry/store/base.py
"""
Provider interfaces for the external services the expiry jobs talk to.

Design principles:
- User records live in a document store owned by the product; this job only
  flips freeExpiryWarnedAt, subscriptionStatus and deleteMedia
- Identities (name, email) come from a separate directory keyed by userId
- Templates are looked up by logical name + language
- Audit writes are append-only and best-effort
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime


def to_iso(value: datetime) -> str:
    """Serialize a datetime as ISO-8601 UTC with milliseconds and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are treated as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class UserRecord:
    """A user document from the user collection."""
    document_id: str
    user_id: str
    plan: str | None = None
    plan_started: datetime | None = None
    subscription_status: str | None = None
    free_expiry_warned_at: datetime | None = None
    delete_media: datetime | None = None


@dataclass
class UserIdentity:
    """Account identity from the user directory."""
    user_id: str
    name: str | None = None
    email: str | None = None


@dataclass
class EmailTemplate:
    """A localized notification template."""
    name: str
    language: str
    subject: str = ""
    body_html: str = ""


@dataclass
class AuditEntry:
    """One append-only audit record."""
    function_name: str
    action: str
    user_id: str
    details: str

    def to_document(self) -> dict[str, str]:
        return {
            "functionName": self.function_name,
            "action": self.action,
            "userId": self.user_id,
            "details": self.details,
        }


@dataclass(frozen=True)
class CandidateFilter:
    """
    Selection predicate for one job's scan.

    Stores translate this into their native query language; matches() is the
    reference semantics used by the in-memory store.
    """
    plan: str
    plan_started_on_or_before: datetime
    require_unwarned: bool = False
    excluded_statuses: tuple[str, ...] = field(default_factory=tuple)

    def matches(self, user: UserRecord) -> bool:
        if user.plan != self.plan:
            return False
        if user.plan_started is None or user.plan_started > self.plan_started_on_or_before:
            return False
        if self.require_unwarned and user.free_expiry_warned_at is not None:
            return False
        if user.subscription_status in self.excluded_statuses:
            return False
        return True


class UserStore(ABC):
    """
    Abstract interface for the user collection.

    Implementations must handle:
    - Filtered, offset-paginated listing
    - Targeted updates of the expiry bookkeeping fields
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging."""
        pass

    @abstractmethod
    def list_users(self, candidate_filter: CandidateFilter, limit: int, offset: int) -> list[UserRecord]:
        """Return at most `limit` matching users starting at `offset`."""
        pass

    @abstractmethod
    def mark_warned(self, user: UserRecord, warned_at: datetime) -> None:
        """Set freeExpiryWarnedAt."""
        pass

    @abstractmethod
    def mark_expired(self, user: UserRecord, status: str, delete_media_at: datetime) -> None:
        """Set subscriptionStatus and deleteMedia in one write."""
        pass


class IdentityDirectory(ABC):
    """Lookup of account identities by user id."""

    @abstractmethod
    def get_identity(self, user_id: str) -> UserIdentity:
        """Return the identity or raise when the lookup fails."""
        pass


class TemplateStore(ABC):
    """Lookup of notification templates."""

    @abstractmethod
    def find_template(self, name: str, language: str) -> EmailTemplate | None:
        """Return the first matching template or None. May raise on transport errors."""
        pass


class AuditLog(ABC):
    """Append-only audit sink with a single record operation."""

    @abstractmethod
    def record(self, entry: AuditEntry) -> None:
        pass


class NullAuditLog(AuditLog):
    """Audit sink used when no log collection is configured."""

    def record(self, entry: AuditEntry) -> None:
        return None


@dataclass
class ExpiryStores:
    """The set of providers one run needs."""
    users: UserStore
    identities: IdentityDirectory
    templates: TemplateStore
    audit: AuditLog
