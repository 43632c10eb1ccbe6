"""
Factory function for creating the provider bundle.
"""

import logging
from typing import Optional

from planexpiry.config import Settings, get_settings
from planexpiry.store.base import AuditLog, ExpiryStores, NullAuditLog

logger = logging.getLogger(__name__)

# Global singleton instance and the settings it was built from
_stores: Optional[ExpiryStores] = None
_built_from: Optional[Settings] = None


def get_stores(settings: Optional[Settings] = None) -> ExpiryStores:
    """
    Get or create the provider bundle.

    The bundle is rebuilt when settings differing from the ones it was built
    from are passed in. A bundle installed with set_stores() is always
    returned as is.

    Args:
        settings: Settings to build from (default: get_settings())

    Returns:
        ExpiryStores instance (singleton)

    Environment:
        STORE_PROVIDER: 'appwrite' (default) or 'memory'
    """
    global _stores, _built_from

    if _stores is not None and (settings is None or _built_from is None or settings == _built_from):
        return _stores

    settings = settings or get_settings()
    name = settings.STORE_PROVIDER

    if name == "appwrite":
        stores = _build_appwrite_stores(settings)
    elif name == "memory":
        stores = _build_memory_stores()
    else:
        raise ValueError(f"Unknown store provider: {name}. Available: appwrite, memory")

    _stores, _built_from = stores, settings
    logger.info(f"Store provider initialized: {_stores.users.name}")
    return _stores


def _build_appwrite_stores(settings: Settings) -> ExpiryStores:
    from appwrite.services.databases import Databases
    from appwrite.services.users import Users

    from planexpiry.store.appwrite_provider import (
        AppwriteAuditLog,
        AppwriteIdentityDirectory,
        AppwriteTemplateStore,
        AppwriteUserStore,
        create_client,
    )

    client = create_client(settings)
    databases = Databases(client)

    audit: AuditLog
    if settings.APPWRITE_FUNCTION_LOGS_COLLECTION_ID:
        audit = AppwriteAuditLog(
            databases,
            settings.APPWRITE_DATABASE_ID,
            settings.APPWRITE_FUNCTION_LOGS_COLLECTION_ID,
        )
    else:
        logger.info("[AUDIT] No log collection configured, audit logging disabled")
        audit = NullAuditLog()

    return ExpiryStores(
        users=AppwriteUserStore(
            databases,
            settings.APPWRITE_DATABASE_ID,
            settings.APPWRITE_USER_COLLECTION_ID,
        ),
        identities=AppwriteIdentityDirectory(Users(client)),
        templates=AppwriteTemplateStore(
            databases,
            settings.SYSTEM_DB_ID,
            settings.MAIL_TEMPLATES_COLLECTION_ID,
        ),
        audit=audit,
    )


def _build_memory_stores() -> ExpiryStores:
    from planexpiry.store.memory_provider import (
        InMemoryAuditLog,
        InMemoryIdentityDirectory,
        InMemoryTemplateStore,
        InMemoryUserStore,
    )

    return ExpiryStores(
        users=InMemoryUserStore(),
        identities=InMemoryIdentityDirectory(),
        templates=InMemoryTemplateStore(),
        audit=InMemoryAuditLog(),
    )


def set_stores(stores: ExpiryStores) -> None:
    """
    Set a custom provider bundle (useful for testing).
    """
    global _stores, _built_from
    _stores = stores
    _built_from = None


def reset_stores() -> None:
    """
    Reset the provider singleton (for testing).
    """
    global _stores, _built_from
    _stores = None
    _built_from = None
