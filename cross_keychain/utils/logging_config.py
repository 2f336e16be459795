"""
Logging configuration using structlog for structured, JSON-based logging.

Log output goes to stderr so that command output on stdout (passwords,
JSON reports) stays machine-readable. Events carry service and account
identifiers but never passwords or key material.
"""

import sys

import structlog


def configure_logging(log_level: str = "WARNING") -> None:
    """Configure structured logging with JSON output on stderr.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
