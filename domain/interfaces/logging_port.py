from typing_extensions import Protocol
from typing import Any, Optional


class BoundLogger(Protocol):
    """Protocol for a logger carrying bound context (request_id, agreement_id, step...)."""

    def info(self, event: str, **kwargs: Any) -> None:
        """
        Log an info event.

        Args:
            event: snake_case event name, e.g. "agreement_created"
            **kwargs: Additional context fields
        """
        ...

    def warning(self, event: str, **kwargs: Any) -> None:
        """Log a warning event."""
        ...

    def error(self, event: str, exc_info: bool = False, **kwargs: Any) -> None:
        """
        Log an error event.

        Args:
            event: snake_case event name
            exc_info: Whether to include exception info
            **kwargs: Additional context fields
        """
        ...


class LoggingPort(Protocol):
    """Protocol for structured logging."""

    def bind(self, **kwargs: Any) -> BoundLogger:
        """Return a logger with kwargs bound to every event it emits."""
        ...


class NoOpLogger:
    """Bound logger that drops everything; used when no LoggingPort is wired."""

    def info(self, event: str, **kwargs: Any) -> None:
        pass

    def warning(self, event: str, **kwargs: Any) -> None:
        pass

    def error(self, event: str, exc_info: bool = False, **kwargs: Any) -> None:
        pass


def bind_logger(logging_port: Optional[LoggingPort], **kwargs: Any) -> BoundLogger:
    """Bind context on the given port, or return a NoOpLogger when there is none."""
    if logging_port is None:
        return NoOpLogger()
    return logging_port.bind(**kwargs)
