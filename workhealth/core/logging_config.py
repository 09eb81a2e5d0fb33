"""
Central logging configuration for workhealth.

Suppresses verbose debug logs from third-party HTTP and LLM client libraries
while keeping workhealth's own diagnostics, and stamps every record with the
id of the analysis being processed.
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for the id of the analysis currently being processed.
# contextvars keep the id isolated between concurrent asyncio tasks.
analysis_id_var: ContextVar[str] = ContextVar("analysis_id", default="")


def new_analysis_id() -> str:
    """Generate and activate a fresh analysis id for the current context.

    Returns:
        The new analysis id
    """
    analysis_id = uuid.uuid4().hex[:12]
    analysis_id_var.set(analysis_id)
    return analysis_id


def get_analysis_id() -> str:
    """Get current analysis id from context.

    Returns:
        Current analysis id, or "no-analysis-id" if not set
    """
    analysis_id = analysis_id_var.get()
    return analysis_id if analysis_id else "no-analysis-id"


class CorrelationIdFilter(logging.Filter):
    """Add the current analysis id to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add analysis id to log record.

        Args:
            record: Log record to enhance

        Returns:
            True to allow record to be logged
        """
        record.analysis_id = get_analysis_id()
        return True


# Third-party loggers that generate excessive debug output
NOISY_LOGGERS: dict[str, int] = {
    "httpx": logging.WARNING,  # HTTP client request logs
    "httpcore": logging.WARNING,  # Connection pool internals
    "anthropic": logging.WARNING,  # LLM client request logs
    "asyncio": logging.WARNING,  # Event loop debug logs
    "urllib3.connectionpool": logging.WARNING,
}


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for workhealth.

    Debug mode can be overridden via environment variable for troubleshooting.

    Args:
        debug_mode: Whether to enable debug logging for workhealth modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        WORKHEALTH_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        WORKHEALTH_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("WORKHEALTH_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("WORKHEALTH_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()

    # Only add a handler if none exist (preserve the colored setup from __init__.py)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        formatter = logging.Formatter(
            "[%(asctime)s] [%(analysis_id)s] %(levelname)s - %(name)s - %(message)s"
        )
        handler.setFormatter(formatter)
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    logger_config = dict(NOISY_LOGGERS)
    logger_config["workhealth"] = logging.DEBUG if final_debug else logging.INFO

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.debug(
            "Debug logging enabled for workhealth modules. Third-party debug logs suppressed."
        )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in ["workhealth", *NOISY_LOGGERS]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status
