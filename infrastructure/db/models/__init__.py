from infrastructure.db.models.base import Base
from infrastructure.db.models.agreements import AgreementModel
from infrastructure.db.models.installments import InstallmentModel
from infrastructure.db.models.sms_logs import SmsLogModel

__all__ = ["Base", "AgreementModel", "InstallmentModel", "SmsLogModel"]
