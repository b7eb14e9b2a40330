"""Tests for mapping validated records onto storage entities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest

from review_ingestor.exceptions import TransformationError
from review_ingestor.pipeline.parser import parse_line, validate_record
from review_ingestor.pipeline.transformer import parse_review_date, transform
from review_ingestor.schemas.records import ProviderOverall, RawRecord


def _record(document: dict) -> RawRecord:
    return validate_record(parse_line(json.dumps(document)))


def test_transform_maps_review_fields(record_factory) -> None:
    """Every review column is populated from the matching document field."""

    result = transform(_record(record_factory()), "daily-reviews/agoda_com_2025-04-10.jl")
    review = result.review

    assert review.hotel_id == 10984
    assert review.review_id == "948353737"
    assert review.provider_id == 332
    assert review.platform == "Agoda"
    assert review.hotel_name == "Oscar Saigon Hotel"
    assert review.rating == pytest.approx(6.4)
    assert review.review_title == "Perfect location and safe but hotel under renovation"
    assert review.review_comments == "Hotel room is basic and very small."
    assert review.check_in_date == "April 2025"
    assert review.reviewer_country == "India"
    assert review.reviewer_name == "********"
    assert review.room_type == "Premium Deluxe Double Room"
    assert review.length_of_stay == 2
    assert review.review_group_name == "Couple"
    assert review.translate_source == "en"
    assert review.translate_target == "en"
    assert review.source_file == "daily-reviews/agoda_com_2025-04-10.jl"


def test_transform_normalizes_review_date_to_utc(record_factory) -> None:
    """Offset timestamps are converted to the same instant in UTC."""

    review = transform(_record(record_factory()), "a.jl").review

    assert review.review_date == datetime(2025, 4, 9, 22, 37, tzinfo=timezone.utc)


def test_transform_maps_overall_ratings(record_factory) -> None:
    """Each provider aggregate becomes one rating entity for the record's hotel."""

    document = record_factory(
        overall=[
            {"providerId": 332, "provider": "Agoda", "overallScore": 7.9, "reviewCount": 7070},
            {"providerId": 3038, "provider": "Booking.com", "overallScore": 8.1},
        ]
    )

    ratings = transform(_record(document), "a.jl").overall_ratings

    assert [rating.provider_id for rating in ratings] == [332, 3038]
    assert all(rating.hotel_id == 10984 for rating in ratings)
    assert ratings[0].review_count == 7070
    assert ratings[1].review_count is None
    assert ratings[1].grades is None


def test_transform_without_providers_yields_no_ratings(record_factory) -> None:
    """A record without aggregates still produces its review."""

    result = transform(_record(record_factory(overall=[])), "a.jl")

    assert result.overall_ratings == ()
    assert result.review.review_id == "948353737"


def test_transform_without_reviewer_info_leaves_reviewer_fields_empty(record_factory) -> None:
    """A missing reviewer block yields null reviewer columns."""

    document = record_factory()
    del document["comment"]["reviewerInfo"]

    review = transform(_record(document), "a.jl").review

    assert review.reviewer_country is None
    assert review.reviewer_name is None
    assert review.room_type is None
    assert review.length_of_stay is None
    assert review.review_group_name is None


def test_transform_rejects_aggregate_without_provider_id(record_factory) -> None:
    """An aggregate that cannot be keyed fails the line."""

    document = record_factory(overall=[{"provider": "Agoda", "overallScore": 7.9}])

    with pytest.raises(TransformationError, match="no provider id"):
        transform(_record(document), "a.jl")


def test_transform_rejects_unvalidated_record() -> None:
    """Records missing their key fields cannot be transformed."""

    with pytest.raises(TransformationError):
        transform(RawRecord(platform="Agoda"), "a.jl")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2025-04-10T05:37:00+07:00", datetime(2025, 4, 9, 22, 37, tzinfo=timezone.utc)),
        ("2025-04-10T05:37:00Z", datetime(2025, 4, 10, 5, 37, tzinfo=timezone.utc)),
        ("2025-04-10T05:37:00.250-03:00", datetime(2025, 4, 10, 8, 37, 0, 250000, tzinfo=timezone.utc)),
    ],
)
def test_parse_review_date_accepts_offset_timestamps(value: str, expected: datetime) -> None:
    """Timestamps with an offset parse to aware UTC datetimes."""

    assert parse_review_date(value) == expected


@pytest.mark.parametrize("value", ["yesterday", "2025-13-40T00:00:00+00:00", "2025-04-10T05:37:00"])
def test_parse_review_date_returns_none_for_unusable_values(
    value: str, caplog: pytest.LogCaptureFixture
) -> None:
    """Unparseable or offset-less values are logged and dropped."""

    with caplog.at_level(logging.WARNING):
        assert parse_review_date(value, source_file="a.jl") is None

    assert value in caplog.text


def test_parse_review_date_passes_through_none() -> None:
    assert parse_review_date(None) is None


def test_unparseable_date_does_not_fail_the_record(record_factory) -> None:
    """A bad review date leaves the column empty but keeps the review."""

    review = transform(_record(record_factory(review_date="not-a-date")), "a.jl").review

    assert review.review_date is None
    assert review.review_id == "948353737"


def test_provider_overall_defaults_are_empty() -> None:
    overall = ProviderOverall.model_validate({"providerId": 1})

    assert overall.overall_score is None
    assert overall.grades is None
