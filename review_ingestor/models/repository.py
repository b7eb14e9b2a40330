"""Repository helpers and idempotent stores for persistence models."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt

from ..exceptions import PersistenceError
from ..monitoring.metrics import record_upsert
from ..schemas.entities import (
    OverallRatingEntity,
    ReviewEntity,
    TransformedRecord,
    UpsertOutcome,
)
from ..utils.logging import setup_logger
from .base import session_scope
from .overall_rating import OverallRating
from .processed_file import ProcessedFile
from .review import Review, utcnow

logger = setup_logger(__name__, context={"component": "Repository"})

T = TypeVar("T")

# A lost insert race is retried once; the second attempt finds the row and updates it.
CONFLICT_ATTEMPTS = 2


class ReviewRepository:
    """Data access helpers for :class:`Review`."""

    def __init__(self, session: Session):
        """Store the SQLAlchemy session used for persistence operations."""

        self._session = session

    def get_by_natural_key(self, review_id: str, provider_id: int) -> Review | None:
        statement = select(Review).where(
            Review.review_id == review_id,
            Review.provider_id == provider_id,
        )
        return self._session.scalars(statement).one_or_none()

    def upsert(self, entity: ReviewEntity) -> UpsertOutcome:
        """Insert the review, or refresh its mutable fields if the key exists."""

        existing = self.get_by_natural_key(entity.review_id, entity.provider_id)
        if existing is not None:
            existing.rating = entity.rating
            existing.review_comments = entity.review_comments
            existing.updated_at = utcnow()
            self._session.flush()
            return UpsertOutcome.UPDATED

        self._session.add(
            Review(
                hotel_id=entity.hotel_id,
                platform=entity.platform,
                hotel_name=entity.hotel_name,
                review_id=entity.review_id,
                provider_id=entity.provider_id,
                rating=entity.rating,
                review_title=entity.review_title,
                review_comments=entity.review_comments,
                review_date=entity.review_date,
                check_in_date=entity.check_in_date,
                reviewer_country=entity.reviewer_country,
                reviewer_name=entity.reviewer_name,
                room_type=entity.room_type,
                length_of_stay=entity.length_of_stay,
                review_group_name=entity.review_group_name,
                translate_source=entity.translate_source,
                translate_target=entity.translate_target,
                source_file=entity.source_file,
            )
        )
        self._session.flush()
        return UpsertOutcome.INSERTED

    def page(self, *, offset: int, limit: int) -> tuple[list[Review], int]:
        """Return one page of reviews ordered by id, plus the total row count."""

        total = self._session.scalar(select(func.count()).select_from(Review)) or 0
        rows = self._session.scalars(
            select(Review).order_by(Review.id).offset(offset).limit(limit)
        ).all()
        return list(rows), total


class OverallRatingRepository:
    """Data access helpers for :class:`OverallRating`."""

    def __init__(self, session: Session):
        self._session = session

    def get_by_natural_key(self, hotel_id: int, provider_id: int) -> OverallRating | None:
        statement = select(OverallRating).where(
            OverallRating.hotel_id == hotel_id,
            OverallRating.provider_id == provider_id,
        )
        return self._session.scalars(statement).one_or_none()

    def upsert(self, entity: OverallRatingEntity) -> UpsertOutcome:
        """Insert the aggregate, or refresh score, count and grades if the key exists."""

        existing = self.get_by_natural_key(entity.hotel_id, entity.provider_id)
        if existing is not None:
            existing.overall_score = entity.overall_score
            existing.review_count = entity.review_count
            existing.grades = dict(entity.grades) if entity.grades is not None else None
            existing.updated_at = utcnow()
            self._session.flush()
            return UpsertOutcome.UPDATED

        self._session.add(
            OverallRating(
                hotel_id=entity.hotel_id,
                provider_id=entity.provider_id,
                provider=entity.provider,
                overall_score=entity.overall_score,
                review_count=entity.review_count,
                grades=dict(entity.grades) if entity.grades is not None else None,
            )
        )
        self._session.flush()
        return UpsertOutcome.INSERTED


class ProcessedFileRepository:
    """Data access helpers for :class:`ProcessedFile`."""

    def __init__(self, session: Session):
        self._session = session

    def exists(self, filename: str) -> bool:
        statement = select(ProcessedFile.id).where(ProcessedFile.filename == filename)
        return self._session.scalar(statement) is not None

    def existing_filenames(self, filenames: Iterable[str]) -> set[str]:
        names = list(filenames)
        if not names:
            return set()
        statement = select(ProcessedFile.filename).where(ProcessedFile.filename.in_(names))
        return set(self._session.scalars(statement).all())

    def create(self, filename: str, records_processed: int, duration_ms: int) -> ProcessedFile:
        entry = ProcessedFile(
            filename=filename,
            records_processed=records_processed,
            processing_duration_ms=duration_ms,
        )
        self._session.add(entry)
        self._session.flush()
        return entry

    def page(self, *, offset: int, limit: int) -> tuple[list[ProcessedFile], int]:
        """Return one page of ledger entries, most recent first, plus the total count."""

        total = self._session.scalar(select(func.count()).select_from(ProcessedFile)) or 0
        rows = self._session.scalars(
            select(ProcessedFile)
            .order_by(ProcessedFile.processed_at.desc(), ProcessedFile.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return list(rows), total


def _run_with_conflict_retry(operation: Callable[[], T]) -> T:
    """Run a transactional operation, retrying once if it loses a unique-key race."""

    retrying = Retrying(
        retry=retry_if_exception_type(IntegrityError),
        stop=stop_after_attempt(CONFLICT_ATTEMPTS),
        before_sleep=before_sleep_log(logger, logging.WARNING),  # type: ignore[arg-type]
        reraise=True,
    )
    try:
        return retrying(operation)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Database upsert failed: {exc}") from exc


class ReviewStore:
    """Idempotent create-or-update of review and aggregate rows.

    Every call runs in its own transaction, so concurrent workers never share a
    session. When two writers race on the same natural key the database unique
    constraint rejects the second insert; that writer retries, finds the row and
    updates it, so the last writer wins.
    """

    def upsert_review(self, review: ReviewEntity) -> UpsertOutcome:
        def _operation() -> UpsertOutcome:
            with session_scope() as session:
                return ReviewRepository(session).upsert(review)

        outcome = _run_with_conflict_retry(_operation)
        record_upsert("review", outcome.value)
        return outcome

    def upsert_overall_rating(self, rating: OverallRatingEntity) -> UpsertOutcome:
        def _operation() -> UpsertOutcome:
            with session_scope() as session:
                return OverallRatingRepository(session).upsert(rating)

        outcome = _run_with_conflict_retry(_operation)
        record_upsert("overall_rating", outcome.value)
        return outcome

    def upsert_record(
        self, record: TransformedRecord
    ) -> tuple[UpsertOutcome, list[UpsertOutcome]]:
        """Upsert a review and its aggregates atomically; a failure rolls back the line."""

        def _operation() -> tuple[UpsertOutcome, list[UpsertOutcome]]:
            with session_scope() as session:
                review_outcome = ReviewRepository(session).upsert(record.review)
                ratings = OverallRatingRepository(session)
                rating_outcomes = [ratings.upsert(entity) for entity in record.overall_ratings]
                return review_outcome, rating_outcomes

        review_outcome, rating_outcomes = _run_with_conflict_retry(_operation)
        record_upsert("review", review_outcome.value)
        for outcome in rating_outcomes:
            record_upsert("overall_rating", outcome.value)
        return review_outcome, rating_outcomes


class ProcessedFileLedger:
    """Durable record of files whose processing attempt has concluded."""

    def exists(self, filename: str) -> bool:
        try:
            with session_scope() as session:
                return ProcessedFileRepository(session).exists(filename)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to query processed files: {exc}") from exc

    def processed_filenames(self, filenames: Iterable[str]) -> set[str]:
        """Return the subset of ``filenames`` already present in the ledger."""

        try:
            with session_scope() as session:
                return ProcessedFileRepository(session).existing_filenames(filenames)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to query processed files: {exc}") from exc

    def mark_processed(self, filename: str, records_processed: int, duration_ms: int) -> bool:
        """Write the ledger entry for ``filename``.

        Entries are immutable: if one already exists it is left untouched and
        ``False`` is returned.
        """

        try:
            with session_scope() as session:
                ProcessedFileRepository(session).create(filename, records_processed, duration_ms)
        except IntegrityError:
            logger.warning(
                "Ledger entry already exists; keeping the original",
                extra={"object_key": filename, "status": "duplicate"},
            )
            return False
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to record processed file '{filename}': {exc}") from exc
        return True


def list_reviews(*, page: int, size: int) -> tuple[list[Review], int]:
    """Return a page of stored reviews using a managed session."""

    with session_scope() as session:
        return ReviewRepository(session).page(offset=page * size, limit=size)


def list_processed_files(*, page: int, size: int) -> tuple[list[ProcessedFile], int]:
    """Return a page of ledger entries using a managed session."""

    with session_scope() as session:
        return ProcessedFileRepository(session).page(offset=page * size, limit=size)
