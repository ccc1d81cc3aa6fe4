from typing_extensions import Protocol


class MetricsPort(Protocol):
    """Protocol for metrics operations."""
    
    def increment_agreements_created(self, guarantee_type: str) -> None:
        """
        Increment the aghsat_agreements_created_total counter.
        
        Args:
            guarantee_type: One of "cheque" or "gold"
        """
        ...
    
    def increment_schedule_rejected(self) -> None:
        """Increment the aghsat_schedule_rejected_total counter (terms produced no schedule)."""
        ...

    def increment_installments_paid(self) -> None:
        """Increment the aghsat_installments_paid_total counter."""
        ...

    def increment_sms_sent(self, event: str, outcome: str) -> None:
        """
        Increment the aghsat_sms_sent_total counter.
        
        Args:
            event: SMS event name (e.g., "payment_installment")
            outcome: One of "success" or "failed"
        """
        ...
