"""
Structured logging system for the job board client.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring fetch and persistence health.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for listing fetches and saved-job persistence.
    """

    def __init__(
        self,
        name: str = "jobboard",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.handlers.clear()  # Remove existing handlers

        self.metrics = {
            "fetches_attempted": 0,
            "fetches_successful": 0,
            "fetches_failed": 0,
            "stale_responses_dropped": 0,
            "persistence_failures": 0,
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobboard_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_fetch_attempt(self):
        self.metrics["fetches_attempted"] += 1

    def record_fetch_success(self):
        self.metrics["fetches_successful"] += 1

    def record_fetch_failure(self, error_type: str):
        """Record a failed fetch and count it by error type."""
        self.metrics["fetches_failed"] += 1
        self._count_error(error_type)

    def record_stale_response(self):
        self.metrics["stale_responses_dropped"] += 1

    def record_persistence_failure(self, error_type: str):
        """Record a failed saved-jobs write or a corrupt read."""
        self.metrics["persistence_failures"] += 1
        self._count_error(error_type)

    def _count_error(self, error_type: str):
        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics with the fetch success rate filled in."""
        metrics_copy = dict(self.metrics)
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        attempts = metrics_copy["fetches_attempted"]
        metrics_copy["fetch_success_rate"] = (
            round(metrics_copy["fetches_successful"] / attempts, 3) if attempts else 0.0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Job Board Session Metrics ===")
        self.info(
            f"Fetches: {metrics['fetches_successful']}/{metrics['fetches_attempted']} "
            f"({metrics['fetch_success_rate'] * 100:.1f}% success)"
        )
        self.info(f"Stale responses dropped: {metrics['stale_responses_dropped']}")
        self.info(f"Persistence failures: {metrics['persistence_failures']}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobboard",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level defaults to LOG_LEVEL; file output goes to JOBBOARD_LOG_DIR and
    is switched off with JOBBOARD_LOG_FILE=0.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if level is None:
            level = os.getenv("LOG_LEVEL", "INFO")
        kwargs.setdefault("enable_file", os.getenv("JOBBOARD_LOG_FILE", "1") not in ("0", "false", "no"))
        if os.getenv("JOBBOARD_LOG_DIR"):
            kwargs.setdefault("log_dir", Path(os.environ["JOBBOARD_LOG_DIR"]))
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
