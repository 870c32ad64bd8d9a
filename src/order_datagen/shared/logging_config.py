"""Logging configuration for the generator's structured JSON logs."""
import logging
import sys

# Loggers that are chatty at INFO and irrelevant to generation runs
_QUIET_LOGGERS = ("faker", "asyncio")


def configure_structured_logging(level: str | None = None) -> None:
    """Configure root logging for JSON-per-line output on stdout.

    Args:
        level: Log level name. Falls back to ORDER_DATAGEN_LOG_LEVEL, then INFO.
    """
    from order_datagen.config.settings import get_log_level

    resolved = (level or get_log_level()).upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format="%(message)s",  # StructuredLogger already emits JSON
        stream=sys.stdout,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
