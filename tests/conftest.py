"""Pytest configuration - no path manipulation, rely on proper package installation."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import pytest

from review_ingestor.exceptions import ObjectListingError, ObjectReadError
from review_ingestor.models.base import reset_engine
from review_ingestor.schemas.entities import ObjectDescriptor
from review_ingestor.utils.config import (
    _get_settings_cached,
    _load_service_configuration_cached,
    get_settings,
)


@pytest.fixture(autouse=True)
def _isolated_runtime(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Give every test its own SQLite database and the always-required variables."""

    db_path = tmp_path_factory.mktemp("sqlite-db") / "reviews.sqlite"
    monkeypatch.setenv("REVIEWS_DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("REVIEWS_S3__BUCKET", "test-reviews")
    monkeypatch.setenv("REVIEWS_API_KEYS", '["test-key"]')
    monkeypatch.delenv("REVIEWS_ENVIRONMENT", raising=False)
    monkeypatch.delenv("REVIEWS_CONFIG_PROFILE", raising=False)

    get_settings(reload=True)
    reset_engine()
    yield
    reset_engine()
    # Variables set by the test are still present here; rebuild lazily.
    _get_settings_cached.cache_clear()
    _load_service_configuration_cached.cache_clear()


class FakeObjectStore:
    """In-memory object store recording which readers were opened and closed."""

    def __init__(self, files: dict[str, list[str] | Exception] | None = None) -> None:
        self.files: dict[str, list[str] | Exception] = dict(files or {})
        self.listing_error: Exception | None = None
        self.opened: list[str] = []
        self.closed: list[str] = []

    def list_objects(
        self, bucket: str | None = None, prefix: str | None = None
    ) -> list[ObjectDescriptor]:
        if self.listing_error is not None:
            raise ObjectListingError("test-reviews", prefix or "", str(self.listing_error))
        return [ObjectDescriptor(key=key, size=0) for key in self.files]

    @contextmanager
    def open_lines(self, key: str, bucket: str | None = None) -> Iterator[Iterator[str]]:
        content = self.files[key]
        if isinstance(content, Exception) and not isinstance(content, _BreakAfter):
            raise ObjectReadError(key, str(content))
        self.opened.append(key)
        try:
            yield _iterate(key, content)
        finally:
            self.closed.append(key)


class _BreakAfter(Exception):
    """Content that yields some lines and then fails mid-stream."""

    def __init__(self, lines: list[str]) -> None:
        super().__init__("connection reset by peer")
        self.lines = lines


def _iterate(key: str, content: list[str] | Exception) -> Iterator[str]:
    if isinstance(content, _BreakAfter):
        yield from content.lines
        raise ObjectReadError(key, str(content))
    yield from content  # type: ignore[misc]


@pytest.fixture
def fake_store_factory() -> Callable[..., FakeObjectStore]:
    """Build an in-memory object store from ``{key: lines}``."""

    return FakeObjectStore


@pytest.fixture
def broken_stream() -> Callable[[list[str]], Exception]:
    """Return content that yields ``lines`` and then breaks the stream."""

    return _BreakAfter


def build_record(
    *,
    hotel_id: int = 10984,
    review_id: int = 948353737,
    provider_id: int = 332,
    rating: float = 6.4,
    comments: str = "Hotel room is basic and very small.",
    review_date: str = "2025-04-10T05:37:00+07:00",
    overall: list[dict[str, Any]] | None = None,
    **comment_overrides: Any,
) -> dict[str, Any]:
    comment: dict[str, Any] = {
        "hotelReviewId": review_id,
        "providerId": provider_id,
        "rating": rating,
        "checkInDateMonthAndYear": "April 2025",
        "reviewTitle": "Perfect location and safe but hotel under renovation",
        "reviewComments": comments,
        "reviewDate": review_date,
        "translateSource": "en",
        "translateTarget": "en",
        "reviewerInfo": {
            "countryName": "India",
            "displayMemberName": "********",
            "roomTypeName": "Premium Deluxe Double Room",
            "lengthOfStay": 2,
            "reviewGroupName": "Couple",
        },
    }
    comment.update(comment_overrides)
    return {
        "hotelId": hotel_id,
        "platform": "Agoda",
        "hotelName": "Oscar Saigon Hotel",
        "comment": comment,
        "overallByProviders": overall
        if overall is not None
        else [
            {
                "providerId": provider_id,
                "provider": "Agoda",
                "overallScore": 7.9,
                "reviewCount": 7070,
                "grades": {"Cleanliness": 7.7, "Facilities": 7.2, "Location": 9.1},
            }
        ],
    }


@pytest.fixture
def record_factory() -> Callable[..., dict[str, Any]]:
    """Build a decoded review document with sensible defaults."""

    return build_record


@pytest.fixture
def line_factory() -> Callable[..., str]:
    """Build a JSONL line for a review document."""

    def _line(**kwargs: Any) -> str:
        return json.dumps(build_record(**kwargs))

    return _line
