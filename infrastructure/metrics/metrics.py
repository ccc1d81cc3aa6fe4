# infrastructure/metrics/metrics.py
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

aghsat_agreements_created_total = Counter(
    "aghsat_agreements_created",
    "Installment agreements created",
    ["guarantee_type"]  # cheque|gold
)

aghsat_schedule_rejected_total = Counter(
    "aghsat_schedule_rejected",
    "Agreement terms that could not produce a schedule"
)

aghsat_installments_paid_total = Counter(
    "aghsat_installments_paid",
    "Installments marked as paid"
)

aghsat_sms_sent_total = Counter(
    "aghsat_sms_sent",
    "SMS notifications sent",
    ["event", "outcome"]  # outcome: success|failed
)

sms_send_latency_seconds = Histogram(
    "sms_send_latency_seconds",
    "SMS provider latency in seconds",
    buckets=[0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30]
)


def metrics_endpoint():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
