"""Value objects passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass(slots=True, frozen=True)
class ObjectDescriptor:
    """An object discovered under the configured prefix."""

    key: str
    last_modified: datetime | None = None
    size: int = 0


@dataclass(slots=True, frozen=True)
class ReviewEntity:
    """Storage-ready review row keyed by ``(review_id, provider_id)``."""

    hotel_id: int
    review_id: str
    provider_id: int
    platform: str | None = None
    hotel_name: str | None = None
    rating: float | None = None
    review_title: str | None = None
    review_comments: str | None = None
    review_date: datetime | None = None
    check_in_date: str | None = None
    reviewer_country: str | None = None
    reviewer_name: str | None = None
    room_type: str | None = None
    length_of_stay: int | None = None
    review_group_name: str | None = None
    translate_source: str | None = None
    translate_target: str | None = None
    source_file: str | None = None


@dataclass(slots=True, frozen=True)
class OverallRatingEntity:
    """Storage-ready provider aggregate keyed by ``(hotel_id, provider_id)``."""

    hotel_id: int
    provider_id: int
    provider: str | None = None
    overall_score: float | None = None
    review_count: int | None = None
    grades: dict[str, float] | None = None


@dataclass(slots=True, frozen=True)
class TransformedRecord:
    """Everything a single valid line produces."""

    review: ReviewEntity
    overall_ratings: tuple[OverallRatingEntity, ...] = ()


class UpsertOutcome(str, Enum):
    """Whether an upsert created a row or modified an existing one."""

    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass(slots=True, frozen=True)
class ProcessingResult:
    """Outcome of one file's processing attempt."""

    filename: str
    records_processed: int
    duration_ms: int
    success: bool
    error: str | None = None
    lines_read: int = 0
    lines_skipped: int = 0

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation for API and CLI output."""

        return {
            "filename": self.filename,
            "records_processed": self.records_processed,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error": self.error,
            "lines_read": self.lines_read,
            "lines_skipped": self.lines_skipped,
        }


class RunState(str, Enum):
    """Phases a batch run moves through, in order."""

    LISTING = "listing"
    FILTERING = "filtering"
    DISPATCHING = "dispatching"
    AWAITING = "awaiting"
    AGGREGATED = "aggregated"


@dataclass(slots=True)
class BatchSummary:
    """Aggregate of every file result produced by one batch run."""

    run_id: str
    files_discovered: int = 0
    files_skipped: int = 0
    files_dispatched: int = 0
    files_succeeded: int = 0
    files_failed: int = 0
    records_processed: int = 0
    duration_ms: int = 0
    final_state: RunState = RunState.LISTING
    results: list[ProcessingResult] = field(default_factory=list)

    def as_dict(self, *, include_results: bool = True) -> dict[str, Any]:
        """Return a JSON-friendly representation for API and CLI output."""

        payload: dict[str, Any] = {
            "run_id": self.run_id,
            "files_discovered": self.files_discovered,
            "files_skipped": self.files_skipped,
            "files_dispatched": self.files_dispatched,
            "files_succeeded": self.files_succeeded,
            "files_failed": self.files_failed,
            "records_processed": self.records_processed,
            "duration_ms": self.duration_ms,
            "final_state": self.final_state.value,
        }
        if include_results:
            payload["results"] = [result.as_dict() for result in self.results]
        return payload
