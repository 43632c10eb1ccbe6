"""Unit tests for the free plan expiry job."""

from datetime import timedelta
from unittest.mock import MagicMock

from planexpiry.config import ExpiryConfig
from planexpiry.services.expiry.expiry_job import run_expiry_job
from planexpiry.store.memory_provider import InMemoryTemplateStore


class TestExpiryJobScenarios:

    def test_expires_active_account_past_duration(self, stores, add_account, email_service, config, now):
        """Account 190 days into its plan moves to free_expired with media deletion scheduled."""
        add_account("b", 190)

        result = run_expiry_job(stores, email_service, config, now)

        user = stores.users.get("b")
        assert result.transitioned == 1
        assert result.failed == 0
        assert user.subscription_status == "free_expired"
        assert user.delete_media == now + timedelta(days=183)

        [entry] = stores.audit.entries
        assert entry.action == "plan_expired"
        assert entry.user_id == "user-b"
        assert entry.details == "Free plan expired. Media scheduled for deletion on 2027-04-19T12:00:00.000Z."

    def test_sends_expiry_notice(self, stores, add_account, email_service, config, now):
        add_account("b", 190, name="Sam")

        result = run_expiry_job(stores, email_service, config, now)

        email_service.send_html.assert_called_once_with(
            "b@example.com",
            "Sam, your free plan has ended",
            '<p>Hi Sam, <a href="https://thebigdaypage.com/plans">upgrade</a></p>',
        )
        assert result.emails_sent == 1

    def test_archived_account_is_excluded(self, stores, add_account, email_service, config, now):
        add_account("c", 200, status="archived")

        result = run_expiry_job(stores, email_service, config, now)

        user = stores.users.get("c")
        assert result.processed == 0
        assert result.transitioned == 0
        assert user.subscription_status == "archived"
        assert user.delete_media is None
        assert stores.audit.entries == []

    def test_already_expired_account_is_excluded(self, stores, add_account, email_service, config, now):
        add_account("c", 200, status="free_expired")

        result = run_expiry_job(stores, email_service, config, now)

        assert result.processed == 0
        email_service.send_html.assert_not_called()

    def test_paid_plan_is_excluded(self, stores, add_account, email_service, config, now):
        add_account("p", 400, plan="pro")

        result = run_expiry_job(stores, email_service, config, now)

        assert result.processed == 0
        assert stores.users.get("p").subscription_status == "active"

    def test_each_account_transitions_once_per_run(self, stores, add_account, email_service, now):
        config = ExpiryConfig(batch_size=3)
        for i in range(7):
            add_account(f"u{i}", 190 + i)

        result = run_expiry_job(stores, email_service, config, now)

        assert result.transitioned == 7
        assert len(stores.audit.entries) == 7
        assert len({e.user_id for e in stores.audit.entries}) == 7
        assert all(u.subscription_status == "free_expired" for u in stores.users.all())

    def test_second_run_finds_nothing(self, stores, add_account, email_service, config, now):
        add_account("b", 190)

        run_expiry_job(stores, email_service, config, now)
        second = run_expiry_job(stores, email_service, config, now + timedelta(days=1))

        assert second.processed == 0
        assert len(stores.audit.entries) == 1


class TestExpiryJobBestEffortEmail:
    """The transition is never gated or reversed by the email."""

    def test_send_failure_keeps_transition_and_count(self, stores, add_account, email_service, config, now):
        email_service.send_html.return_value = {"status": "failed", "error": "mailbox unavailable"}
        add_account("b", 190)

        result = run_expiry_job(stores, email_service, config, now)

        assert result.transitioned == 1
        assert result.failed == 0
        assert result.emails_sent == 0
        assert stores.users.get("b").subscription_status == "free_expired"

    def test_transition_happens_before_send(self, stores, add_account, email_service, config, now):
        add_account("b", 190)
        seen_status = []

        def send(recipient, subject, html):
            seen_status.append(stores.users.get("b").subscription_status)
            return {"status": "failed", "error": "boom"}

        email_service.send_html.side_effect = send

        run_expiry_job(stores, email_service, config, now)

        assert seen_status == ["free_expired"]

    def test_identity_failure_still_counts_expired(self, stores, make_user, email_service, config, now):
        stores.users.add(make_user("b", 190))  # no identity registered

        result = run_expiry_job(stores, email_service, config, now)

        assert result.transitioned == 1
        assert result.failed == 0
        email_service.send_html.assert_not_called()

    def test_missing_email_still_counts_expired(self, stores, add_account, email_service, config, now):
        add_account("b", 190, has_email=False)

        result = run_expiry_job(stores, email_service, config, now)

        assert result.transitioned == 1
        email_service.send_html.assert_not_called()

    def test_missing_template_skips_identity_and_email(self, stores, add_account, email_service, config, now):
        stores.templates = InMemoryTemplateStore()
        stores.identities = MagicMock()
        add_account("b", 190)

        result = run_expiry_job(stores, email_service, config, now)

        assert result.transitioned == 1
        assert stores.users.get("b").subscription_status == "free_expired"
        assert [e.action for e in stores.audit.entries] == ["plan_expired"]
        stores.identities.get_identity.assert_not_called()
        email_service.send_html.assert_not_called()


class TestExpiryJobFailures:

    def test_update_failure_counts_error_without_audit(self, stores, add_account, email_service, config, now):
        add_account("b", 190)
        stores.users.mark_expired = MagicMock(side_effect=RuntimeError("write rejected"))

        result = run_expiry_job(stores, email_service, config, now)

        assert result.failed == 1
        assert result.transitioned == 0
        assert stores.audit.entries == []
        email_service.send_html.assert_not_called()

    def test_failed_update_keeps_its_place_in_the_scan(self, stores, add_account, email_service, now):
        config = ExpiryConfig(batch_size=2)
        for i in range(5):
            add_account(f"u{i}", 190 + i)
        real_mark_expired = stores.users.mark_expired

        def mark_expired(user, status, delete_media_at):
            if user.document_id == "u0":
                raise RuntimeError("write rejected")
            real_mark_expired(user, status, delete_media_at)

        stores.users.mark_expired = mark_expired

        result = run_expiry_job(stores, email_service, config, now)

        assert result.transitioned == 4
        assert result.failed == 1
        assert stores.users.page_requests == [(2, 0), (2, 1), (2, 1)]
        assert stores.users.get("u0").subscription_status == "active"
        assert all(stores.users.get(f"u{i}").subscription_status == "free_expired" for i in range(1, 5))

    def test_audit_failure_does_not_affect_counts(self, stores, add_account, email_service, config, now):
        add_account("b", 190)
        stores.audit = MagicMock()
        stores.audit.record.side_effect = RuntimeError("log collection missing")

        result = run_expiry_job(stores, email_service, config, now)

        assert result.transitioned == 1
        assert result.failed == 0

    def test_page_fetch_failure_aborts_job(self, stores, email_service, config, now):
        stores.users = MagicMock()
        stores.users.list_users.side_effect = RuntimeError("database unavailable")

        result = run_expiry_job(stores, email_service, config, now)

        assert result.aborted is True
        assert result.transitioned == 0

    def test_dry_run_has_no_side_effects(self, stores, add_account, email_service, config, now):
        add_account("b", 190)
        add_account("c", 250)

        result = run_expiry_job(stores, email_service, config, now, dry_run=True)

        assert result.transitioned == 2
        assert all(u.subscription_status == "active" for u in stores.users.all())
        assert stores.audit.entries == []
        email_service.send_html.assert_not_called()
