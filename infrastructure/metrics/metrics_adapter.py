"""
Metrics adapter that implements MetricsPort protocol.

Increments the Prometheus counters exposed on /metrics.
"""
from infrastructure.metrics.metrics import (
    aghsat_agreements_created_total,
    aghsat_schedule_rejected_total,
    aghsat_installments_paid_total,
    aghsat_sms_sent_total,
)


class MetricsAdapter:
    """Adapter that implements MetricsPort on top of prometheus_client."""

    def increment_agreements_created(self, guarantee_type: str) -> None:
        aghsat_agreements_created_total.labels(guarantee_type=guarantee_type).inc()

    def increment_schedule_rejected(self) -> None:
        aghsat_schedule_rejected_total.inc()

    def increment_installments_paid(self) -> None:
        aghsat_installments_paid_total.inc()

    def increment_sms_sent(self, event: str, outcome: str) -> None:
        aghsat_sms_sent_total.labels(event=event, outcome=outcome).inc()
