"""
structlog setup for the service.

LOG_FORMAT=json (default) writes one JSON object per line; LOG_FORMAT=console
renders colored key/value lines for local development.
"""
import logging
import os
import sys

import structlog

SERVICE_NAME = os.getenv("SERVICE_NAME", "aghsat-service")
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").lower()


def _renderer():
    if LOG_FORMAT == "console":
        return structlog.dev.ConsoleRenderer()
    # Persian text stays readable in the output
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def configure_logging() -> None:
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=LOG_LEVEL)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger(service=SERVICE_NAME)
