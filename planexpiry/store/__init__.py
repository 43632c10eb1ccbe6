"""
Providers for the user store, identity directory, template store and audit log.
"""

from planexpiry.store.base import (
    AuditEntry,
    AuditLog,
    CandidateFilter,
    EmailTemplate,
    ExpiryStores,
    IdentityDirectory,
    NullAuditLog,
    TemplateStore,
    UserIdentity,
    UserRecord,
    UserStore,
)
from planexpiry.store.factory import get_stores, reset_stores, set_stores

__all__ = [
    "AuditEntry",
    "AuditLog",
    "CandidateFilter",
    "EmailTemplate",
    "ExpiryStores",
    "IdentityDirectory",
    "NullAuditLog",
    "TemplateStore",
    "UserIdentity",
    "UserRecord",
    "UserStore",
    "get_stores",
    "reset_stores",
    "set_stores",
]
