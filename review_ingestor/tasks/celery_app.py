"""Celery worker and beat wiring for scheduled review processing."""

from __future__ import annotations

from celery import Celery

from ..utils.config import GlobalSettings, get_settings
from .schedule import build_crontab

PROCESS_TASK_NAME = "review_ingestor.process_new_files"
SCHEDULE_ENTRY_NAME = "process-new-review-files"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def build_beat_schedule(settings: GlobalSettings) -> dict[str, dict[str, object]]:
    """Return the beat schedule, empty unless scheduling is enabled."""

    if not settings.scheduling.enabled:
        return {}
    return {
        SCHEDULE_ENTRY_NAME: {
            "task": PROCESS_TASK_NAME,
            "schedule": build_crontab(settings.scheduling.cron),
        }
    }


def create_celery_app(settings: GlobalSettings | None = None) -> Celery:
    settings = settings or get_settings()
    broker_url = settings.redis_url or DEFAULT_REDIS_URL

    app = Celery("review_ingestor", broker=broker_url, backend=broker_url)
    app.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        worker_hijack_root_logger=False,
        beat_schedule=build_beat_schedule(settings),
    )
    app.autodiscover_tasks(["review_ingestor.tasks"])
    return app


celery_app = create_celery_app()
