"""Prometheus metrics for purchases, credit limits, dues and reminders"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Purchase metrics
purchase_counter = Counter(
    "spendmart_purchase_total",
    "Purchases submitted",
    ["payment_method", "outcome"],  # committed | shortfall | invalid | failed
)

purchase_amount_histogram = Histogram(
    "spendmart_purchase_amount_lkr",
    "Committed purchase principal",
    ["payment_method"],
    buckets=[500, 1_000, 5_000, 10_000, 25_000, 50_000, 100_000, 250_000],
)

credit_limit_bucket_counter = Counter(
    "spendmart_credit_limit_bucket",
    "Credit limits estimated by bucket",
    ["bucket"],  # 0, <=25k, <=100k, <=250k, >250k
)

# Due metrics
dues_created_counter = Counter(
    "spendmart_dues_created_total",
    "Installment dues scheduled",
)

dues_paid_counter = Counter(
    "spendmart_dues_paid_total",
    "Dues transitioned to paid",
)

# Notification service metrics
reminder_latency_histogram = Histogram(
    "reminder_request_latency_seconds",
    "Notification service response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

reminder_failure_counter = Counter(
    "reminder_failures_total",
    "Reminders that could not be registered or cancelled",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_purchase(payment_method: str, outcome: str, amount: Decimal | None = None) -> None:
    """Count a purchase outcome and, when committed, its amount"""
    purchase_counter.labels(payment_method=payment_method, outcome=outcome).inc()
    if outcome == "committed" and amount is not None:
        purchase_amount_histogram.labels(payment_method=payment_method).observe(float(amount))


def record_credit_limit(limit: Decimal) -> None:
    """Bucket estimated credit limits for distribution analysis"""
    if limit <= 0:
        bucket = "0"
    elif limit <= 25_000:
        bucket = "<=25k"
    elif limit <= 100_000:
        bucket = "<=100k"
    elif limit <= 250_000:
        bucket = "<=250k"
    else:
        bucket = ">250k"

    credit_limit_bucket_counter.labels(bucket=bucket).inc()
