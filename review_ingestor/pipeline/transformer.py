"""Mapping of validated records onto storage-ready entities."""

from __future__ import annotations

from datetime import datetime, timezone

from ..exceptions import TransformationError
from ..schemas.entities import OverallRatingEntity, ReviewEntity, TransformedRecord
from ..schemas.records import ProviderOverall, RawRecord
from ..utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "Transformer"})


def parse_review_date(value: str | None, *, source_file: str | None = None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp carrying a UTC offset, normalized to UTC.

    Unparseable or offset-less values are logged and yield ``None``; they never
    fail the record.
    """
    if value is None:
        return None

    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        logger.warning(
            "Failed to parse review date: %s", value, extra={"object_key": source_file or "-"}
        )
        return None

    if parsed.tzinfo is None or parsed.utcoffset() is None:
        logger.warning(
            "Review date has no UTC offset: %s", value, extra={"object_key": source_file or "-"}
        )
        return None

    return parsed.astimezone(timezone.utc)


def to_review(record: RawRecord, source_file: str) -> ReviewEntity:
    comment = record.comment
    if record.hotel_id is None or comment is None:
        raise TransformationError("Record has no hotel id or comment block")
    if comment.hotel_review_id is None or comment.provider_id is None:
        raise TransformationError("Comment block has no review id or provider id")

    reviewer = comment.reviewer_info
    return ReviewEntity(
        hotel_id=record.hotel_id,
        review_id=str(comment.hotel_review_id),
        provider_id=comment.provider_id,
        platform=record.platform,
        hotel_name=record.hotel_name,
        rating=comment.rating,
        review_title=comment.review_title,
        review_comments=comment.review_comments,
        review_date=parse_review_date(comment.review_date, source_file=source_file),
        check_in_date=comment.check_in_date_month_and_year,
        reviewer_country=reviewer.country_name if reviewer else None,
        reviewer_name=reviewer.display_member_name if reviewer else None,
        room_type=reviewer.room_type_name if reviewer else None,
        length_of_stay=reviewer.length_of_stay if reviewer else None,
        review_group_name=reviewer.review_group_name if reviewer else None,
        translate_source=comment.translate_source,
        translate_target=comment.translate_target,
        source_file=source_file,
    )


def to_overall_rating(overall: ProviderOverall, hotel_id: int) -> OverallRatingEntity:
    if overall.provider_id is None:
        raise TransformationError(f"Provider aggregate for hotel {hotel_id} has no provider id")
    return OverallRatingEntity(
        hotel_id=hotel_id,
        provider_id=overall.provider_id,
        provider=overall.provider,
        overall_score=overall.overall_score,
        review_count=overall.review_count,
        grades=dict(overall.grades) if overall.grades is not None else None,
    )


def transform(record: RawRecord, source_file: str) -> TransformedRecord:
    """
    Map a validated record to one review and zero or more provider aggregates.

    Args:
        record: A record that passed :func:`validate_record`
        source_file: Object key the record was read from

    Returns:
        TransformedRecord holding the review and its aggregates

    Raises:
        TransformationError: If the record lacks the identifiers its keys need
    """
    review = to_review(record, source_file)
    ratings = tuple(
        to_overall_rating(overall, review.hotel_id) for overall in record.overall_by_providers
    )
    return TransformedRecord(review=review, overall_ratings=ratings)
