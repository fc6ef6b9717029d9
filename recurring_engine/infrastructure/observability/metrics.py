"""Prometheus metrics for monitoring batch executions, reminders, and collaborator calls"""

from prometheus_client import Counter, Histogram

from recurring_engine.domain.models import ExecutionReport, ReminderReport

# Batch metrics
batch_counter = Counter(
    "recurring_batch_total",
    "Total scheduling batches run",
    ["job", "status"],  # job: execute | remind, status: success | retry
)

batch_duration_histogram = Histogram(
    "recurring_batch_duration_seconds",
    "Scheduling batch wall time",
    ["job"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

rule_execution_counter = Counter(
    "recurring_rule_executions_total",
    "Per-rule execution outcomes",
    ["outcome"],  # executed | failed
)

reminder_counter = Counter(
    "recurring_reminders_total",
    "Per-rule reminder outcomes",
    ["outcome"],  # raised | already_sent | failed
)

reminder_retraction_failure_counter = Counter(
    "recurring_reminder_retraction_failures_total",
    "Reminder retractions that failed after a rule executed",
)

# Ledger webhook metrics
webhook_latency_histogram = Histogram(
    "ledger_webhook_latency_seconds",
    "Ledger webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "ledger_webhook_failures_total",
    "Failed ledger webhook deliveries",
)

# Notification service metrics
notification_failure_counter = Counter(
    "notification_failures_total",
    "Failed notification service calls",
    ["operation"],  # raise | retract | status
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_execution_batch(report: ExecutionReport, duration_seconds: float) -> None:
    """Record batch status and per-rule outcomes of an execution batch"""
    batch_counter.labels(job="execute", status=report.status.value).inc()
    batch_duration_histogram.labels(job="execute").observe(duration_seconds)

    for outcome in report.outcomes:
        rule_execution_counter.labels(outcome=outcome.status.value).inc()


def record_reminder_scan(report: ReminderReport, duration_seconds: float) -> None:
    """Record batch status and per-rule outcomes of a reminder scan"""
    batch_counter.labels(job="remind", status=report.status.value).inc()
    batch_duration_histogram.labels(job="remind").observe(duration_seconds)

    for outcome in report.outcomes:
        reminder_counter.labels(outcome=outcome.status.value).inc()
