"""Structured logging utilities for generation runs."""
import json
import logging
from datetime import UTC, datetime
from typing import Any


class StructuredLogger:
    """Structured logger that tags every entry with the current job id."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)
        self._correlation_id: str | None = None

    def set_correlation_id(self, correlation_id: str):
        """Set correlation ID (normally the job id) for subsequent entries."""
        self._correlation_id = correlation_id

    def clear_correlation_id(self):
        """Clear correlation ID."""
        self._correlation_id = None

    @property
    def correlation_id(self) -> str | None:
        return self._correlation_id

    def _format_message(self, level: str, message: str, **kwargs: Any) -> dict:
        """Format log message with structured data."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "message": message,
            "job_id": self._correlation_id or "none",
        }

        if kwargs:
            log_entry["context"] = kwargs

        return log_entry

    def _log(self, level: int, level_name: str, message: str, **kwargs: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        entry = self._format_message(level_name, message, **kwargs)
        self.logger.log(level, json.dumps(entry, default=str))

    def info(self, message: str, **kwargs: Any):
        """Log info with structured data."""
        self._log(logging.INFO, "INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any):
        """Log warning with structured data."""
        self._log(logging.WARNING, "WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any):
        """Log error with structured data."""
        self._log(logging.ERROR, "ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs: Any):
        """Log debug with structured data."""
        self._log(logging.DEBUG, "DEBUG", message, **kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get or create structured logger."""
    return StructuredLogger(name)
