"""Celery task driving scheduled batch runs."""

from __future__ import annotations

from typing import Any

from ..exceptions import ReviewIngestorError
from ..pipeline import process_new_files
from ..utils.config import ensure_runtime_configuration, get_settings
from ..utils.logging import setup_logger
from .celery_app import PROCESS_TASK_NAME, celery_app

logger = setup_logger(__name__, context={"component": "CeleryTasks"})


def run_scheduled_processing() -> dict[str, Any]:
    """Execute one batch for a Celery worker and return its summary."""

    settings = ensure_runtime_configuration(get_settings())
    logger.info("Scheduled review processing started", extra={"status": "started"})
    try:
        summary = process_new_files(settings)
    except ReviewIngestorError:
        logger.exception("Scheduled review processing failed", extra={"status": "error"})
        raise

    logger.info(
        "Scheduled review processing completed successfully",
        extra={
            "run_id": summary.run_id,
            "status": "success",
            "records": summary.records_processed,
            "duration_ms": summary.duration_ms,
        },
    )
    return {"status": "success", "summary": summary.as_dict()}


@celery_app.task(name=PROCESS_TASK_NAME, bind=True)
def process_new_files_task(self) -> dict[str, Any]:  # type: ignore[no-untyped-def]
    """Run the ingestion pipeline over every file not yet in the ledger."""

    return run_scheduled_processing()


__all__ = [
    "process_new_files_task",
    "run_scheduled_processing",
]
