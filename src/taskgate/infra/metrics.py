"""Prometheus metrics for task execution.

All metrics use the ``taskgate_`` prefix and live in the default
``prometheus_client`` registry; expose them with
``prometheus_client.start_http_server`` or any ASGI/WSGI exporter.
"""

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# Task metrics
# ---------------------------------------------------------------------------

TASKS_TOTAL = Counter(
    "taskgate_tasks_total",
    "Total task submissions, by outcome",
    ["status"],  # "ok" | "error" | "rejected"
)

TASKS_RUNNING = Gauge(
    "taskgate_tasks_running",
    "Number of tasks currently holding a permit",
)

TASK_DURATION_SECONDS = Histogram(
    "taskgate_task_duration_seconds",
    "Wall-clock duration of a task once admitted",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60, 120),
)

TASK_RETRIES_TOTAL = Counter(
    "taskgate_task_retries_total",
    "Total retry attempts scheduled after a failure",
)

# ---------------------------------------------------------------------------
# Semaphore metrics
# ---------------------------------------------------------------------------

SEMAPHORE_WAIT_SECONDS = Histogram(
    "taskgate_semaphore_wait_seconds",
    "Time spent waiting for a permit",
    buckets=(0.001, 0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30),
)
