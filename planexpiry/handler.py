"""
Serverless function entry point.

The scheduler invokes main(context) once per run. Settings are read from the
environment here and nowhere else; application logs are forwarded to the
context's log/error sinks and the summary goes out through context.res.json.
A run that cannot start (bad settings, unreachable store) is logged and still
answered with a summary carrying one error.
"""

import logging
from datetime import UTC, datetime

from planexpiry.config import get_settings
from planexpiry.logging_config import forward_logs_to
from planexpiry.services.expiry.runner import run_from_settings
from planexpiry.services.expiry.types import RunSummary

logger = logging.getLogger(__name__)


def main(context):
    started_at = datetime.now(UTC)

    try:
        settings = get_settings()
    except Exception as e:
        message = f"Invalid configuration: {e}"
        context.error(message)
        return context.res.json(RunSummary.not_started(started_at, message).to_response())

    with forward_logs_to(context, level=getattr(logging, settings.LOG_LEVEL)):
        try:
            summary = run_from_settings(settings)
        except Exception as e:
            logger.error(f"Free plan expiry run failed to start: {e}", exc_info=True)
            summary = RunSummary.not_started(started_at, str(e))

    return context.res.json(summary.to_response())
