"""Tests for cron translation and the beat schedule."""

from __future__ import annotations

import pytest

from review_ingestor.exceptions import ConfigurationError
from review_ingestor.tasks.celery_app import (
    DEFAULT_REDIS_URL,
    PROCESS_TASK_NAME,
    SCHEDULE_ENTRY_NAME,
    build_beat_schedule,
    create_celery_app,
)
from review_ingestor.tasks.schedule import build_crontab
from review_ingestor.utils.config import get_settings


def test_five_field_expression_maps_onto_crontab() -> None:
    schedule = build_crontab("0 2 * * *")

    assert schedule.minute == {0}
    assert schedule.hour == {2}
    assert len(schedule.day_of_month) == 31


def test_six_field_expression_with_zero_seconds_is_accepted() -> None:
    """A leading seconds field of zero and ``?`` placeholders are understood."""

    schedule = build_crontab("0 30 4 ? * MON")

    assert schedule.minute == {30}
    assert schedule.hour == {4}
    assert schedule.day_of_week == {1}


@pytest.mark.parametrize("expression", ["15 0 2 * * *", "*/10 * * * * *"])
def test_sub_minute_schedules_are_rejected(expression: str) -> None:
    with pytest.raises(ConfigurationError, match="seconds"):
        build_crontab(expression)


@pytest.mark.parametrize("expression", ["0 2 * *", "0 0 2 * * * *", ""])
def test_wrong_field_count_is_rejected(expression: str) -> None:
    with pytest.raises(ConfigurationError, match="5 fields"):
        build_crontab(expression)


def test_out_of_range_values_are_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Invalid cron expression"):
        build_crontab("0 25 * * *")


def test_beat_schedule_is_empty_when_scheduling_disabled() -> None:
    assert build_beat_schedule(get_settings(reload=True)) == {}


def test_beat_schedule_registers_processing_task(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REVIEWS_SCHEDULING__ENABLED", "true")
    monkeypatch.setenv("REVIEWS_SCHEDULING__CRON", "0 0 2 * * ?")

    schedule = build_beat_schedule(get_settings(reload=True))

    entry = schedule[SCHEDULE_ENTRY_NAME]
    assert entry["task"] == PROCESS_TASK_NAME
    assert entry["schedule"].hour == {2}


def test_celery_app_uses_configured_redis_and_beat(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REVIEWS_REDIS_URL", "redis://cache:6379/3")
    monkeypatch.setenv("REVIEWS_SCHEDULING__ENABLED", "true")

    app = create_celery_app(get_settings(reload=True))

    assert app.conf.broker_url == "redis://cache:6379/3"
    assert SCHEDULE_ENTRY_NAME in app.conf.beat_schedule
    assert app.conf.worker_hijack_root_logger is False


def test_celery_app_falls_back_to_local_redis(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REVIEWS_REDIS_URL", raising=False)

    app = create_celery_app(get_settings(reload=True))

    assert app.conf.broker_url == DEFAULT_REDIS_URL
    assert app.conf.beat_schedule == {}
