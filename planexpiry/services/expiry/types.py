"""Result types for the expiry jobs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from planexpiry.store.base import to_iso


@dataclass
class JobResult:
    """Result of one job run."""
    job: str
    dry_run: bool = False
    processed: int = 0
    transitioned: int = 0  # warned or expired
    skipped: int = 0
    failed: int = 0
    emails_sent: int = 0
    pages_fetched: int = 0
    aborted: bool = False
    errors: list[str] = field(default_factory=list)

    def record_error(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)


@dataclass
class RunSummary:
    """Both jobs of one invocation."""
    started_at: datetime
    warning: JobResult
    expiry: JobResult

    @property
    def warned(self) -> int:
        return self.warning.transitioned

    @property
    def expired(self) -> int:
        return self.expiry.transitioned

    @property
    def errors(self) -> int:
        return self.warning.failed + self.expiry.failed

    def to_response(self) -> dict[str, Any]:
        """The invocation response. success is always True on normal completion."""
        return {
            "success": True,
            "warned": self.warned,
            "expired": self.expired,
            "errors": self.errors,
            "timestamp": to_iso(self.started_at),
        }

    @classmethod
    def not_started(cls, started_at: datetime, error: str) -> "RunSummary":
        """Summary for a run that failed before either job could start."""
        warning = JobResult(job="warning", aborted=True)
        warning.record_error(error)
        return cls(started_at=started_at, warning=warning, expiry=JobResult(job="expiry", aborted=True))
