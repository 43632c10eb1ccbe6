"""Unit tests for the two-job runner and its summary."""

from unittest.mock import MagicMock, patch

from planexpiry.services.expiry.runner import run_from_settings, run_plan_expiry
from planexpiry.services.expiry.types import JobResult


class TestRunPlanExpiry:

    def test_summary_counts_both_jobs(self, stores, add_account, email_service, config, now):
        add_account("a", 170)
        add_account("b", 190)
        add_account("c", 200, status="archived")

        summary = run_plan_expiry(stores, email_service, config, now=now)

        assert summary.to_response() == {
            "success": True,
            "warned": 1,
            "expired": 1,
            "errors": 0,
            "timestamp": "2026-10-18T12:00:00.000Z",
        }

    def test_warning_job_runs_before_expiry_job(self, stores, email_service, config, now):
        calls = []

        def fake_warning(*args, **kwargs):
            calls.append("warning")
            return JobResult(job="warning")

        def fake_expiry(*args, **kwargs):
            calls.append("expiry")
            return JobResult(job="expiry")

        with (
            patch("planexpiry.services.expiry.runner.run_warning_job", side_effect=fake_warning),
            patch("planexpiry.services.expiry.runner.run_expiry_job", side_effect=fake_expiry),
        ):
            run_plan_expiry(stores, email_service, config, now=now)

        assert calls == ["warning", "expiry"]

    def test_errors_are_summed_across_jobs(self, stores, add_account, make_user, email_service, config, now):
        stores.users.add(make_user("a", 170))  # warning: identity lookup fails
        add_account("b", 190)
        stores.users.mark_expired = MagicMock(side_effect=RuntimeError("write rejected"))

        summary = run_plan_expiry(stores, email_service, config, now=now)

        assert summary.errors == 2
        assert summary.to_response()["success"] is True

    def test_aborted_warning_job_does_not_stop_expiry_job(self, stores, add_account, email_service, config, now):
        add_account("b", 190)
        real_list = stores.users.list_users
        calls = {"n": 0}

        def flaky_list(candidate_filter, limit, offset):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("database unavailable")
            return real_list(candidate_filter, limit=limit, offset=offset)

        stores.users.list_users = flaky_list

        summary = run_plan_expiry(stores, email_service, config, now=now)

        assert summary.warning.aborted is True
        assert summary.expired == 1
        assert summary.to_response()["success"] is True

    def test_defaults_now_to_current_time(self, stores, email_service, config):
        summary = run_plan_expiry(stores, email_service, config)

        assert summary.started_at.tzinfo is not None
        assert summary.to_response()["timestamp"].endswith("Z")

    def test_both_jobs_receive_same_now(self, stores, email_service, config, now):
        with (
            patch("planexpiry.services.expiry.runner.run_warning_job", return_value=JobResult(job="warning")) as w,
            patch("planexpiry.services.expiry.runner.run_expiry_job", return_value=JobResult(job="expiry")) as e,
        ):
            run_plan_expiry(stores, email_service, config, now=now, dry_run=True)

        assert w.call_args.args[3] == now
        assert e.call_args.args[3] == now
        assert w.call_args.kwargs["dry_run"] is True


class TestRunFromSettings:

    def test_builds_memory_providers_from_settings(self, now):
        from planexpiry.config import Settings

        settings = Settings(_env_file=None, STORE_PROVIDER="memory", RESEND_API_KEY=None)

        summary = run_from_settings(settings, now=now)

        assert summary.to_response()["warned"] == 0
        assert summary.to_response()["expired"] == 0
