"""Prometheus metrics definitions for Review_Ingestor."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

BATCH_RUNS = Counter(
    "review_batch_runs_total",
    "Total batch runs by outcome of the listing phase.",
    labelnames=("status",),
)

FILES_PROCESSED = Counter(
    "review_files_processed_total",
    "Total file processing attempts by status.",
    labelnames=("status",),
)

RECORDS_PROCESSED = Counter(
    "review_records_processed_total",
    "Total review records upserted successfully.",
)

LINES_SKIPPED = Counter(
    "review_lines_skipped_total",
    "Total lines skipped during parsing, grouped by reason.",
    labelnames=("reason",),
)

UPSERTS = Counter(
    "review_upserts_total",
    "Total upserts by entity type and outcome.",
    labelnames=("entity", "outcome"),
)

FILE_PROCESSING_DURATION = Histogram(
    "review_file_processing_duration_seconds",
    "Distribution of per-file processing durations in seconds.",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60, 120, 300),
)

FILES_IN_PROGRESS = Gauge(
    "review_files_in_progress",
    "Number of files currently being processed.",
)


def record_batch_run(status: str) -> None:
    """Increment the batch run counter with the supplied status."""

    BATCH_RUNS.labels(status=status).inc()


def record_file_processed(status: str, records: int, duration_seconds: float) -> None:
    """Record the outcome of one file processing attempt."""

    FILES_PROCESSED.labels(status=status).inc()
    if records > 0:
        RECORDS_PROCESSED.inc(records)
    FILE_PROCESSING_DURATION.observe(max(duration_seconds, 0.0))


def record_line_skipped(reason: str) -> None:
    """Increment the skipped-line counter for the provided reason."""

    LINES_SKIPPED.labels(reason=reason).inc()


def record_upsert(entity: str, outcome: str) -> None:
    UPSERTS.labels(entity=entity, outcome=outcome).inc()


def increment_files_in_progress() -> None:
    FILES_IN_PROGRESS.inc()


def decrement_files_in_progress() -> None:
    FILES_IN_PROGRESS.dec()
