"""
Structured JSON logging for the plan expiry jobs.

Provides a single-line JSON formatter, a context manager that times each job,
and a handler that forwards records to a serverless execution context.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variables for log correlation
run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
job_var: ContextVar[str | None] = ContextVar("job", default=None)

_EXTRA_KEYS = (
    "event",
    "job",
    "user_id",
    "duration_ms",
    "warned",
    "expired",
    "errors",
    "skipped",
    "dry_run",
)


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "run_id": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = run_id_var.get()
        if run_id:
            log_data["run_id"] = run_id

        job = job_var.get()
        if job:
            log_data["job"] = job

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure root logging for the scheduler host or local development.

    Args:
        json_format: If True, use JSON format. If False, use human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Execution context forwarding
# -----------------------------------------------------------------------------


class ContextLogHandler(logging.Handler):
    """
    Forward log records to a function execution context.

    Records below ERROR go to context.log, the rest to context.error.
    """

    def __init__(self, context: Any, level: int = logging.INFO):
        super().__init__(level=level)
        self.context = context
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if record.levelno >= logging.ERROR:
                self.context.error(message)
            else:
                self.context.log(message)
        except Exception:
            self.handleError(record)


@contextmanager
def forward_logs_to(context: Any, level: int = logging.INFO):
    """Attach a ContextLogHandler to the root logger for the duration of the block."""
    root_logger = logging.getLogger()
    handler = ContextLogHandler(context, level=level)
    previous_level = root_logger.level
    if previous_level == logging.NOTSET or previous_level > level:
        root_logger.setLevel(level)
    root_logger.addHandler(handler)
    try:
        yield handler
    finally:
        root_logger.removeHandler(handler)
        root_logger.setLevel(previous_level)


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def log_job(job: str, run_id: str | None = None):
    """
    Context manager for job-level logging.

    Logs job start and end with duration.

    Usage:
        with log_job("warning", run_id=run_id):
            # ... job logic ...
    """
    run_token = run_id_var.set(run_id) if run_id else None
    token = job_var.set(job)

    start_time = time.time()
    logger = logging.getLogger("planexpiry.jobs")

    logger.info(f"Job {job} started", extra={"event": "job_start", "job": job})

    try:
        yield
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Job {job} completed",
            extra={"event": "job_complete", "job": job, "duration_ms": duration_ms},
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"Job {job} failed: {e}",
            extra={"event": "job_failed", "job": job, "duration_ms": duration_ms},
            exc_info=True,
        )
        raise
    finally:
        job_var.reset(token)
        if run_token is not None:
            run_id_var.reset(run_token)
