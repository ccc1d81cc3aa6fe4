from .agreement_repo import AgreementRepository
from .sms_port import SmsPort
from .metrics_port import MetricsPort
from .logging_port import LoggingPort, BoundLogger, NoOpLogger, bind_logger

__all__ = ["AgreementRepository", "SmsPort", "MetricsPort", "LoggingPort", "BoundLogger", "NoOpLogger", "bind_logger"]
