"""
Pytest configuration and fixtures.
"""

import os
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

# Set test environment
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("STORE_PROVIDER", "memory")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")

from planexpiry.config import ExpiryConfig, get_settings  # noqa: E402
from planexpiry.constants import TemplateNames  # noqa: E402
from planexpiry.store.base import EmailTemplate, ExpiryStores, UserIdentity, UserRecord  # noqa: E402
from planexpiry.store.factory import reset_stores  # noqa: E402
from planexpiry.store.memory_provider import (  # noqa: E402
    InMemoryAuditLog,
    InMemoryIdentityDirectory,
    InMemoryTemplateStore,
    InMemoryUserStore,
)

FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=UTC)

WARNING_TEMPLATE = EmailTemplate(
    name=TemplateNames.WARNING,
    language="en",
    subject="{{name}}, your plan ends {{expiryDate}}",
    body_html="<p>Hi {{name}}, upgrade at {{upgradeUrl}} before {{expiryDate}}.</p>",
)

EXPIRED_TEMPLATE = EmailTemplate(
    name=TemplateNames.EXPIRED,
    language="en",
    subject="{{name}}, your free plan has ended",
    body_html="<p>Hi {{name}}, <a href=\"{{upgradeUrl}}\">upgrade</a></p>",
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: tests that talk to real Appwrite/Resend services")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Clear cached settings and providers between tests."""
    get_settings.cache_clear()
    reset_stores()
    yield
    get_settings.cache_clear()
    reset_stores()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def config():
    return ExpiryConfig()


@pytest.fixture
def make_user():
    """Factory for user records whose plan started `days_ago` days before FIXED_NOW."""

    def _make(
        document_id: str,
        days_ago: float,
        plan: str = "free",
        status: str | None = "active",
        warned_at: datetime | None = None,
        user_id: str | None = None,
    ) -> UserRecord:
        return UserRecord(
            document_id=document_id,
            user_id=user_id or f"user-{document_id}",
            plan=plan,
            plan_started=FIXED_NOW - timedelta(days=days_ago),
            subscription_status=status,
            free_expiry_warned_at=warned_at,
        )

    return _make


@pytest.fixture
def stores():
    """In-memory providers with both templates installed and no users."""
    return ExpiryStores(
        users=InMemoryUserStore(),
        identities=InMemoryIdentityDirectory(),
        templates=InMemoryTemplateStore([WARNING_TEMPLATE, EXPIRED_TEMPLATE]),
        audit=InMemoryAuditLog(),
    )


@pytest.fixture
def add_account(stores, make_user):
    """Add a user record plus a matching identity to `stores`."""

    def _add(document_id: str, days_ago: float, name: str | None = "Alex", has_email: bool = True, **kwargs):
        user = make_user(document_id, days_ago, **kwargs)
        stores.users.add(user)
        email = f"{document_id}@example.com" if has_email else None
        stores.identities.add(UserIdentity(user_id=user.user_id, name=name, email=email))
        return user

    return _add


@pytest.fixture
def email_service():
    """Mock EmailService whose sends succeed."""
    service = MagicMock()
    service.send_html.return_value = {"status": "sent", "message_id": "msg_123"}
    return service
