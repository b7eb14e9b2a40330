"""Engine construction against SQLite and pooled backends."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import inspect

from review_ingestor.models import base as models_base
from review_ingestor.utils.config import get_settings


@pytest.fixture
def engine_call(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Replace ``create_engine`` and record the URL and options it receives."""

    call: dict[str, Any] = {}

    def _record(url: str, **kwargs: Any) -> object:
        call["url"] = url
        call.update(kwargs)
        return object()

    monkeypatch.setattr(models_base, "create_engine", _record)
    return call


def test_postgres_engine_receives_pool_settings(
    monkeypatch: pytest.MonkeyPatch, engine_call: dict[str, Any]
) -> None:
    monkeypatch.setenv("REVIEWS_DATABASE_URL", "postgresql+psycopg://svc:pw@db:5432/reviews")
    monkeypatch.setenv("REVIEWS_DATABASE__POOL_SIZE", "7")
    monkeypatch.setenv("REVIEWS_DATABASE__MAX_OVERFLOW", "3")
    monkeypatch.setenv("REVIEWS_DATABASE__TIMEOUT", "15.5")
    monkeypatch.setenv("REVIEWS_DATABASE__RECYCLE_SECONDS", "1200")
    get_settings(reload=True)

    models_base._create_engine()

    assert engine_call["url"].startswith("postgresql+psycopg")
    assert engine_call["pool_size"] == 7
    assert engine_call["max_overflow"] == 3
    assert engine_call["pool_timeout"] == pytest.approx(15.5)
    assert engine_call["pool_pre_ping"] is True
    assert engine_call["pool_recycle"] == 1200


def test_zero_recycle_leaves_pool_recycle_unset(
    monkeypatch: pytest.MonkeyPatch, engine_call: dict[str, Any]
) -> None:
    monkeypatch.setenv("REVIEWS_DATABASE_URL", "postgresql+psycopg://svc:pw@db:5432/reviews")
    monkeypatch.setenv("REVIEWS_DATABASE__RECYCLE_SECONDS", "0")
    get_settings(reload=True)

    models_base._create_engine()

    assert "pool_recycle" not in engine_call


def test_sqlite_engine_only_gets_thread_and_busy_timeout_args(
    monkeypatch: pytest.MonkeyPatch, engine_call: dict[str, Any]
) -> None:
    monkeypatch.setenv("REVIEWS_DATABASE_URL", "sqlite:///./review_ingestor.db")
    get_settings(reload=True)

    models_base._create_engine()

    assert engine_call["connect_args"] == {"check_same_thread": False, "timeout": 30.0}
    assert "pool_size" not in engine_call
    assert "pool_timeout" not in engine_call


def test_missing_url_falls_back_to_local_sqlite(
    monkeypatch: pytest.MonkeyPatch, engine_call: dict[str, Any]
) -> None:
    monkeypatch.delenv("REVIEWS_DATABASE_URL", raising=False)
    get_settings(reload=True)

    models_base._create_engine()

    assert engine_call["url"] == models_base.DEFAULT_DATABASE_URL


def test_get_engine_creates_review_tables() -> None:
    tables = set(inspect(models_base.get_engine()).get_table_names())

    assert {"reviews", "overall_ratings", "processed_files"} <= tables


def test_check_database_succeeds_against_sqlite() -> None:
    models_base.check_database()
