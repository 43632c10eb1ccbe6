# planexpiry/store/memory_provider.py
"""
In-memory providers for development and testing.

Mimics the Appwrite collections closely enough to run both jobs end to end:
filters are evaluated live on every page fetch, so records mutated during a
scan drop out of later pages exactly like they do in the real store.
NOT for production use.
"""

import logging
from dataclasses import replace
from datetime import datetime

from planexpiry.store.base import (
    AuditEntry,
    AuditLog,
    CandidateFilter,
    EmailTemplate,
    IdentityDirectory,
    TemplateStore,
    UserIdentity,
    UserRecord,
    UserStore,
)

logger = logging.getLogger(__name__)


class InMemoryUserStore(UserStore):
    """User collection held in a dict, in insertion order."""

    def __init__(self, users: list[UserRecord] | None = None):
        self._users: dict[str, UserRecord] = {}
        self.page_requests: list[tuple[int, int]] = []
        for user in users or []:
            self.add(user)

    @property
    def name(self) -> str:
        return "memory"

    def add(self, user: UserRecord) -> None:
        self._users[user.document_id] = user

    def get(self, document_id: str) -> UserRecord:
        return self._users[document_id]

    def all(self) -> list[UserRecord]:
        return list(self._users.values())

    def list_users(self, candidate_filter: CandidateFilter, limit: int, offset: int) -> list[UserRecord]:
        self.page_requests.append((limit, offset))
        matching = [u for u in self._users.values() if candidate_filter.matches(u)]
        # Callers get copies so that only explicit writes change stored state
        return [replace(u) for u in matching[offset:offset + limit]]

    def mark_warned(self, user: UserRecord, warned_at: datetime) -> None:
        self._users[user.document_id].free_expiry_warned_at = warned_at

    def mark_expired(self, user: UserRecord, status: str, delete_media_at: datetime) -> None:
        stored = self._users[user.document_id]
        stored.subscription_status = status
        stored.delete_media = delete_media_at


class InMemoryIdentityDirectory(IdentityDirectory):

    def __init__(self, identities: list[UserIdentity] | None = None):
        self._identities = {i.user_id: i for i in identities or []}

    def add(self, identity: UserIdentity) -> None:
        self._identities[identity.user_id] = identity

    def get_identity(self, user_id: str) -> UserIdentity:
        try:
            return self._identities[user_id]
        except KeyError:
            raise LookupError(f"User {user_id} not found") from None


class InMemoryTemplateStore(TemplateStore):

    def __init__(self, templates: list[EmailTemplate] | None = None):
        self._templates = list(templates or [])

    def add(self, template: EmailTemplate) -> None:
        self._templates.append(template)

    def find_template(self, name: str, language: str) -> EmailTemplate | None:
        for template in self._templates:
            if template.name == name and template.language == language:
                return template
        return None


class InMemoryAuditLog(AuditLog):

    def __init__(self):
        self.entries: list[AuditEntry] = []

    def record(self, entry: AuditEntry) -> None:
        self.entries.append(entry)
