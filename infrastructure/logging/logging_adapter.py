"""
Logging adapter that implements LoggingPort protocol.

Application services only see LoggingPort/BoundLogger; structlog stays here.
"""
from typing import Any
from domain.interfaces import BoundLogger
from infrastructure.logging.structlog_logs import logger as structlog_logger


class StructlogBoundLogger:
    """Wraps a structlog bound logger behind the BoundLogger protocol."""

    def __init__(self, bound_logger):
        self._logger = bound_logger

    def info(self, event: str, **kwargs: Any) -> None:
        self._logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._logger.warning(event, **kwargs)

    def error(self, event: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._logger.error(event, exc_info=exc_info, **kwargs)


class LoggingAdapter:
    """
    LoggingPort implementation producing structured JSON logs.

    Example:
        log = LoggingAdapter().bind(request_id=request_id, step="agreement_creation")
        log.info("agreement_created", agreement_id=agreement.id)
    """

    def bind(self, **kwargs: Any) -> BoundLogger:
        return StructlogBoundLogger(structlog_logger.bind(**kwargs))
