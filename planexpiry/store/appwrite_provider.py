# planexpiry/store/appwrite_provider.py
"""
Appwrite-backed providers.

User records, templates and audit entries are documents in Appwrite
Databases; identities come from the Appwrite Users service.
"""

import logging

from appwrite.client import Client
from appwrite.id import ID
from appwrite.models.document import Document
from appwrite.query import Query
from appwrite.services.databases import Databases
from appwrite.services.users import Users

from planexpiry.config import Settings
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
    parse_iso,
    to_iso,
)

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> Client:
    """Build an authenticated Appwrite client. Fails fast on missing settings."""
    missing = settings.missing_appwrite_settings()
    if missing:
        raise ValueError(f"Missing Appwrite configuration: {', '.join(missing)}")

    client = Client()
    client.set_endpoint(settings.APPWRITE_ENDPOINT)
    client.set_project(settings.APPWRITE_PROJECT_ID)
    client.set_key(settings.APPWRITE_API_KEY)
    return client


def user_from_document(doc: Document) -> UserRecord:
    """Map a user collection document onto a UserRecord."""
    data = doc.data
    return UserRecord(
        document_id=doc.id,
        user_id=data.get("userId") or doc.id,
        plan=data.get("plan"),
        plan_started=parse_iso(data.get("planStarted")),
        subscription_status=data.get("subscriptionStatus"),
        free_expiry_warned_at=parse_iso(data.get("freeExpiryWarnedAt")),
        delete_media=parse_iso(data.get("deleteMedia")),
    )


def build_queries(candidate_filter: CandidateFilter, limit: int, offset: int) -> list[str]:
    """Translate a CandidateFilter into Appwrite query strings."""
    queries = [
        Query.equal("plan", candidate_filter.plan),
        Query.less_than_equal("planStarted", to_iso(candidate_filter.plan_started_on_or_before)),
    ]
    if candidate_filter.require_unwarned:
        queries.append(Query.is_null("freeExpiryWarnedAt"))
    for status in candidate_filter.excluded_statuses:
        queries.append(Query.not_equal("subscriptionStatus", status))
    queries.append(Query.limit(limit))
    queries.append(Query.offset(offset))
    return queries


class AppwriteUserStore(UserStore):
    """User collection in an Appwrite database."""

    def __init__(self, databases: Databases, database_id: str, collection_id: str):
        self._databases = databases
        self._database_id = database_id
        self._collection_id = collection_id

    @property
    def name(self) -> str:
        return "appwrite"

    def list_users(self, candidate_filter: CandidateFilter, limit: int, offset: int) -> list[UserRecord]:
        response = self._databases.list_documents(
            self._database_id,
            self._collection_id,
            queries=build_queries(candidate_filter, limit, offset),
        )
        return [user_from_document(doc) for doc in response.documents]

    def mark_warned(self, user, warned_at) -> None:
        self._databases.update_document(
            self._database_id,
            self._collection_id,
            user.document_id,
            data={"freeExpiryWarnedAt": to_iso(warned_at)},
        )

    def mark_expired(self, user, status, delete_media_at) -> None:
        self._databases.update_document(
            self._database_id,
            self._collection_id,
            user.document_id,
            data={
                "subscriptionStatus": status,
                "deleteMedia": to_iso(delete_media_at),
            },
        )


class AppwriteIdentityDirectory(IdentityDirectory):
    """Appwrite Users service."""

    def __init__(self, users: Users):
        self._users = users

    def get_identity(self, user_id: str) -> UserIdentity:
        account = self._users.get(user_id)
        return UserIdentity(
            user_id=user_id,
            name=account.name or None,
            email=account.email or None,
        )


class AppwriteTemplateStore(TemplateStore):
    """Mail template collection, usually in the system database."""

    def __init__(self, databases: Databases, database_id: str, collection_id: str):
        self._databases = databases
        self._database_id = database_id
        self._collection_id = collection_id

    def find_template(self, name: str, language: str) -> EmailTemplate | None:
        response = self._databases.list_documents(
            self._database_id,
            self._collection_id,
            queries=[
                Query.equal("name", name),
                Query.equal("language", language),
            ],
        )
        if not response.documents:
            return None

        doc = response.documents[0].data
        return EmailTemplate(
            name=doc.get("name", name),
            language=doc.get("language", language),
            subject=doc.get("subject") or "",
            body_html=doc.get("bodyHtml") or "",
        )


class AppwriteAuditLog(AuditLog):
    """Function log collection. Raises on write failure; wrap for best-effort use."""

    def __init__(self, databases: Databases, database_id: str, collection_id: str):
        self._databases = databases
        self._database_id = database_id
        self._collection_id = collection_id

    def record(self, entry: AuditEntry) -> None:
        self._databases.create_document(
            self._database_id,
            self._collection_id,
            ID.unique(),
            data=entry.to_document(),
        )
