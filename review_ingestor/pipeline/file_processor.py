"""End-to-end processing of a single review file."""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any, Protocol

from ..exceptions import ParseError, PersistenceError, RecordValidationError, TransformationError
from ..monitoring.metrics import (
    decrement_files_in_progress,
    increment_files_in_progress,
    record_file_processed,
    record_line_skipped,
)
from ..schemas.entities import (
    ObjectDescriptor,
    OverallRatingEntity,
    ProcessingResult,
    ReviewEntity,
    TransformedRecord,
    UpsertOutcome,
)
from ..storage.object_store import ObjectStore
from ..utils.logging import StructuredLoggerAdapter, log_file_result, setup_logger
from .parser import parse_line, validate_record
from .transformer import transform

logger = setup_logger(__name__, context={"component": "FileProcessor"})


class UpsertStore(Protocol):
    """Idempotent persistence of transformed records."""

    def upsert_review(self, review: ReviewEntity) -> UpsertOutcome: ...

    def upsert_overall_rating(self, rating: OverallRatingEntity) -> UpsertOutcome: ...

    def upsert_record(self, record: TransformedRecord) -> Any: ...


class Ledger(Protocol):
    """Durable set of files whose processing has concluded."""

    def exists(self, filename: str) -> bool: ...

    def processed_filenames(self, filenames: Iterable[str]) -> set[str]: ...

    def mark_processed(self, filename: str, records_processed: int, duration_ms: int) -> bool: ...


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class FileProcessor:
    """
    Drives reader, parser, transformer and store for one file at a time.

    :meth:`process` never raises. Line-level problems are logged and skipped;
    anything that stops the file from being read to the end yields a failed
    :class:`ProcessingResult` and leaves the ledger untouched so the file is
    picked up again by the next run.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        store: UpsertStore,
        ledger: Ledger,
        *,
        run_id: str | None = None,
    ) -> None:
        self._object_store = object_store
        self._store = store
        self._ledger = ledger
        self._run_id = run_id or "-"

    def process(self, descriptor: ObjectDescriptor | str) -> ProcessingResult:
        key = descriptor.key if isinstance(descriptor, ObjectDescriptor) else descriptor
        log = logger.bind(run_id=self._run_id, object_key=key)

        started = time.perf_counter()
        records_processed = 0
        lines_read = 0
        lines_skipped = 0

        log.info("Processing file", extra={"status": "started"})
        increment_files_in_progress()
        try:
            with self._object_store.open_lines(key) as lines:
                for line_number, line in enumerate(lines, start=1):
                    stripped = line.strip()
                    if not stripped:
                        continue
                    lines_read += 1
                    if self._process_line(log, key, line_number, stripped):
                        records_processed += 1
                    else:
                        lines_skipped += 1

            duration_ms = _elapsed_ms(started)
            self._ledger.mark_processed(key, records_processed, duration_ms)
            result = ProcessingResult(
                filename=key,
                records_processed=records_processed,
                duration_ms=duration_ms,
                success=True,
                lines_read=lines_read,
                lines_skipped=lines_skipped,
            )
        except Exception as exc:
            log.exception(
                "Failed to process file", extra={"status": "error", "records": records_processed}
            )
            result = ProcessingResult(
                filename=key,
                records_processed=records_processed,
                duration_ms=_elapsed_ms(started),
                success=False,
                error=str(exc),
                lines_read=lines_read,
                lines_skipped=lines_skipped,
            )
        finally:
            decrement_files_in_progress()

        record_file_processed(
            "success" if result.success else "error",
            result.records_processed,
            result.duration_ms / 1000,
        )
        log_file_result(log, result, run_id=self._run_id)
        return result

    def _process_line(
        self, log: StructuredLoggerAdapter, key: str, line_number: int, line: str
    ) -> bool:
        """Parse, validate, transform and upsert one line; return whether it was stored."""

        context = {"status": "skipped"}
        try:
            record = validate_record(parse_line(line))
            self._store.upsert_record(transform(record, key))
        except ParseError as exc:
            record_line_skipped("parse_error")
            log.error("Failed to parse line %d: %s", line_number, exc, extra=context)
            return False
        except RecordValidationError as exc:
            record_line_skipped("invalid")
            log.warning("Invalid review data at line %d: %s", line_number, exc, extra=context)
            return False
        except TransformationError as exc:
            record_line_skipped("transform_error")
            log.warning("Failed to transform line %d: %s", line_number, exc, extra=context)
            return False
        except PersistenceError as exc:
            record_line_skipped("persistence_error")
            log.error("Failed to store line %d: %s", line_number, exc, extra=context)
            return False
        return True
