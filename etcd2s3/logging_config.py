# etcd2s3/logging_config.py
"""
Structured logging for CLI commands.

Console output for interactive use, single-line JSON for log shippers
(systemd journal, Kubernetes CronJob logs). A command name set by
log_command() is attached to every JSON line emitted while it runs.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variable for correlating lines with the running command
command_var: ContextVar[str | None] = ContextVar("command", default=None)

_EXTRA_FIELDS = (
    "event",
    "duration_ms",
    "operation",
    "key",
    "size_bytes",
    "store",
    "kept",
    "deleted",
    "dry_run",
)


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "command": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        command = command_var.get()
        if command:
            log_data["command"] = command

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = False, level: str = "INFO") -> None:
    """
    Configure root logging.

    Args:
        json_format: If True, use JSON format. If False, use human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stdout is reserved for command output
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("s3transfer").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@contextmanager
def log_command(command: str):
    """
    Context manager for command-level logging.

    Logs start and end with duration.

    Usage:
        with log_command("cleanup"):
            result = apply_retention(...)
    """
    token = command_var.set(command)
    start_time = time.time()
    logger = logging.getLogger("etcd2s3.command")

    logger.debug(f"Command {command} started", extra={"event": "command_start"})

    try:
        yield
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Command {command} completed in {duration_ms}ms",
            extra={"event": "command_complete", "duration_ms": duration_ms},
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"Command {command} failed: {e}",
            extra={"event": "command_failed", "duration_ms": duration_ms},
        )
        raise
    finally:
        command_var.reset(token)


@contextmanager
def log_store_operation(operation: str, key: str):
    """
    Context manager for store operation instrumentation.

    Usage:
        with log_store_operation("upload", key) as metrics:
            client.upload_file(...)
            metrics["size_bytes"] = size
    """
    start_time = time.time()
    logger = logging.getLogger("etcd2s3.storage")
    metrics: dict = {"size_bytes": 0}

    try:
        yield metrics

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"Store {operation} completed: {key} ({metrics['size_bytes']} bytes, {duration_ms}ms)",
            extra={
                "event": f"store_{operation}_complete",
                "operation": operation,
                "key": key,
                "duration_ms": duration_ms,
                "size_bytes": metrics["size_bytes"],
            },
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"Store {operation} failed: {key} - {e}",
            extra={
                "event": f"store_{operation}_failed",
                "operation": operation,
                "key": key,
                "duration_ms": duration_ms,
            },
        )
        raise
