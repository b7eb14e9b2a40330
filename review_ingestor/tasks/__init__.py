"""Celery task package exposing the configured app and processing task."""

from __future__ import annotations

from .celery_app import celery_app as app
from .processing import process_new_files_task, run_scheduled_processing

__all__ = [
    "app",
    "process_new_files_task",
    "run_scheduled_processing",
]
