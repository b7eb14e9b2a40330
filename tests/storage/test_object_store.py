"""Tests for S3 listing and line streaming."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from review_ingestor.exceptions import ConfigurationError, ObjectListingError, ObjectReadError
from review_ingestor.storage import object_store as object_store_module
from review_ingestor.storage.object_store import S3ObjectStore
from review_ingestor.utils.config import get_settings

MODIFIED = datetime(2025, 4, 10, 2, 0, tzinfo=timezone.utc)


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class StubPaginator:
    def __init__(self, pages: list[dict[str, Any]], error: Exception | None = None) -> None:
        self._pages = pages
        self._error = error
        self.calls: list[dict[str, Any]] = []

    def paginate(self, **kwargs: Any):  # type: ignore[no-untyped-def]
        self.calls.append(kwargs)
        for page in self._pages:
            yield page
        if self._error is not None:
            raise self._error


class StubBody:
    def __init__(self, lines: list[bytes], error: Exception | None = None) -> None:
        self._lines = lines
        self._error = error
        self.closed = False

    def iter_lines(self):  # type: ignore[no-untyped-def]
        yield from self._lines
        if self._error is not None:
            raise self._error

    def close(self) -> None:
        self.closed = True


class StubS3Client:
    def __init__(
        self,
        *,
        paginator: StubPaginator | None = None,
        body: StubBody | None = None,
        get_error: Exception | None = None,
    ) -> None:
        self.paginator = paginator or StubPaginator([])
        self.body = body
        self.get_error = get_error
        self.get_calls: list[dict[str, Any]] = []

    def get_paginator(self, operation: str) -> StubPaginator:
        assert operation == "list_objects_v2"
        return self.paginator

    def get_object(self, **kwargs: Any) -> dict[str, Any]:
        self.get_calls.append(kwargs)
        if self.get_error is not None:
            raise self.get_error
        return {"Body": self.body}


def _entry(key: str, size: int = 128) -> dict[str, Any]:
    return {"Key": key, "Size": size, "LastModified": MODIFIED}


def _store(client: StubS3Client, **kwargs: Any) -> S3ObjectStore:
    kwargs.setdefault("prefix", "daily-reviews/")
    return S3ObjectStore(client, bucket="test-reviews", **kwargs)


def test_list_objects_filters_on_suffix() -> None:
    """Only keys ending with the configured suffix are returned."""

    client = StubS3Client(
        paginator=StubPaginator(
            [{"Contents": [_entry("daily-reviews/a.jl"), _entry("daily-reviews/b.txt")]}]
        )
    )

    files = _store(client).list_objects()

    assert [descriptor.key for descriptor in files] == ["daily-reviews/a.jl"]
    assert files[0].size == 128
    assert files[0].last_modified == MODIFIED


def test_list_objects_follows_every_page() -> None:
    """Objects from every page are returned in listing order."""

    paginator = StubPaginator(
        [
            {"Contents": [_entry(f"daily-reviews/{index}.jl") for index in range(3)]},
            {"Contents": [_entry("daily-reviews/3.jl")]},
            {},
        ]
    )

    files = _store(StubS3Client(paginator=paginator), page_size=3).list_objects()

    assert [descriptor.key for descriptor in files] == [
        "daily-reviews/0.jl",
        "daily-reviews/1.jl",
        "daily-reviews/2.jl",
        "daily-reviews/3.jl",
    ]
    assert paginator.calls == [
        {
            "Bucket": "test-reviews",
            "Prefix": "daily-reviews/",
            "PaginationConfig": {"PageSize": 3},
        }
    ]


def test_list_objects_accepts_bucket_and_prefix_overrides() -> None:
    paginator = StubPaginator([])

    assert _store(StubS3Client(paginator=paginator)).list_objects("other", "") == []
    assert paginator.calls[0]["Bucket"] == "other"
    assert paginator.calls[0]["Prefix"] == ""


def test_list_objects_empty_prefix_returns_empty_list() -> None:
    assert _store(StubS3Client()).list_objects() == []


def test_list_objects_failure_midway_raises_listing_error() -> None:
    """A page failure surfaces as ObjectListingError, never a partial list."""

    paginator = StubPaginator(
        [{"Contents": [_entry("daily-reviews/a.jl")]}],
        error=_client_error("AccessDenied", "ListObjectsV2"),
    )

    with pytest.raises(ObjectListingError) as excinfo:
        _store(StubS3Client(paginator=paginator)).list_objects()

    assert excinfo.value.bucket == "test-reviews"
    assert "AccessDenied" in str(excinfo.value)


def test_list_objects_connection_failure_raises_listing_error() -> None:
    paginator = StubPaginator([], error=EndpointConnectionError(endpoint_url="http://s3"))

    with pytest.raises(ObjectListingError):
        _store(StubS3Client(paginator=paginator)).list_objects()


def test_open_lines_streams_decoded_lines_and_closes_body() -> None:
    """Lines are decoded as UTF-8, a leading BOM is dropped and the body closed."""

    body = StubBody(["\ufeff{\"a\": 1}".encode(), b"", "{\"b\": \"café\"}".encode()])
    client = StubS3Client(body=body)

    with _store(client).open_lines("daily-reviews/a.jl") as lines:
        collected = list(lines)

    assert collected == ['{"a": 1}', "", '{"b": "café"}']
    assert body.closed is True
    assert client.get_calls == [{"Bucket": "test-reviews", "Key": "daily-reviews/a.jl"}]


def test_open_lines_closes_body_when_caller_fails() -> None:
    body = StubBody([b"one", b"two"])

    with pytest.raises(RuntimeError):
        with _store(StubS3Client(body=body)).open_lines("daily-reviews/a.jl") as lines:
            next(lines)
            raise RuntimeError("caller stopped")

    assert body.closed is True


def test_open_lines_get_failure_raises_read_error() -> None:
    client = StubS3Client(get_error=_client_error("NoSuchKey", "GetObject"))

    with pytest.raises(ObjectReadError) as excinfo:
        with _store(client).open_lines("daily-reviews/gone.jl"):
            pass

    assert excinfo.value.key == "daily-reviews/gone.jl"


def test_open_lines_stream_failure_raises_read_error() -> None:
    """A transport error while iterating is reported as ObjectReadError."""

    body = StubBody([b"first"], error=OSError("connection reset by peer"))

    with pytest.raises(ObjectReadError, match="connection reset"):
        with _store(StubS3Client(body=body)).open_lines("daily-reviews/a.jl") as lines:
            list(lines)

    assert body.closed is True


def test_from_settings_uses_configured_location(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REVIEWS_S3__PREFIX", "reviews/2025/")
    monkeypatch.setenv("REVIEWS_S3__SUFFIX", ".jsonl")
    monkeypatch.setenv("REVIEWS_AWS__REGION", "eu-west-1")
    monkeypatch.setenv("REVIEWS_AWS__ENDPOINT_URL", "http://localhost:4566")

    captured: dict[str, Any] = {}

    class _FakeSession:
        def __init__(self, **kwargs: Any) -> None:
            captured["session"] = kwargs

        def client(self, service_name: str, endpoint_url: str | None = None) -> StubS3Client:
            captured["service"] = service_name
            captured["endpoint_url"] = endpoint_url
            return StubS3Client()

    monkeypatch.setattr(object_store_module, "Session", _FakeSession)

    store = S3ObjectStore.from_settings(get_settings(reload=True))

    assert store.bucket == "test-reviews"
    assert store.prefix == "reviews/2025/"
    assert store.suffix == ".jsonl"
    assert captured == {
        "session": {"region_name": "eu-west-1"},
        "service": "s3",
        "endpoint_url": "http://localhost:4566",
    }


def test_from_settings_requires_bucket(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REVIEWS_S3__BUCKET", raising=False)

    with pytest.raises(ConfigurationError, match="bucket"):
        S3ObjectStore.from_settings(get_settings(reload=True))
