"""Batch orchestration: list, filter, fan out, aggregate."""

from __future__ import annotations

import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..monitoring.metrics import record_batch_run
from ..schemas.entities import BatchSummary, ObjectDescriptor, RunState
from ..storage.object_store import ObjectStore
from ..utils.logging import StructuredLoggerAdapter, setup_logger
from .file_processor import FileProcessor, Ledger, UpsertStore

logger = setup_logger(__name__, context={"component": "BatchOrchestrator"})

DEFAULT_MAX_CONCURRENCY = 5


class BatchOrchestrator:
    """
    Runs one pass over the object store.

    The run moves through ``LISTING -> FILTERING -> DISPATCHING -> AWAITING ->
    AGGREGATED``. Only a listing (or ledger lookup) failure aborts it; a file
    that fails is simply absent from the ledger and is retried on the next run.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        store: UpsertStore,
        ledger: Ledger,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._object_store = object_store
        self._store = store
        self._ledger = ledger
        self._max_concurrency = max_concurrency

    def _enter(
        self, log: StructuredLoggerAdapter, summary: BatchSummary, state: RunState
    ) -> None:
        summary.final_state = state
        log.debug("Run entered %s", state.value, extra={"status": state.value})

    def pending_files(self, files: list[ObjectDescriptor]) -> list[ObjectDescriptor]:
        """Drop files already in the ledger, and duplicate keys, preserving order."""

        done = self._ledger.processed_filenames(descriptor.key for descriptor in files)
        pending: list[ObjectDescriptor] = []
        seen: set[str] = set()
        for descriptor in files:
            if descriptor.key in done or descriptor.key in seen:
                continue
            seen.add(descriptor.key)
            pending.append(descriptor)
        return pending

    def run(self) -> BatchSummary:
        """
        Process every file not yet in the ledger.

        Returns:
            BatchSummary aggregated from the per-file results

        Raises:
            ObjectListingError: If the object store cannot be listed
            PersistenceError: If the ledger cannot be consulted
        """
        summary = BatchSummary(run_id=uuid.uuid4().hex)
        log = logger.bind(run_id=summary.run_id)
        started = time.perf_counter()
        log.info("Starting review processing", extra={"status": "started"})

        try:
            self._enter(log, summary, RunState.LISTING)
            files = self._object_store.list_objects()
            summary.files_discovered = len(files)

            self._enter(log, summary, RunState.FILTERING)
            pending = self.pending_files(files)
        except Exception:
            record_batch_run("error")
            log.exception("Review processing aborted", extra={"status": "error"})
            raise

        summary.files_skipped = summary.files_discovered - len(pending)
        log.info(
            "Processing %d new files out of %d total files", len(pending), summary.files_discovered
        )

        self._enter(log, summary, RunState.DISPATCHING)
        if pending:
            processor = FileProcessor(
                self._object_store, self._store, self._ledger, run_id=summary.run_id
            )
            workers = min(self._max_concurrency, len(pending))
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="review-file"
            ) as executor:
                futures = [executor.submit(processor.process, descriptor) for descriptor in pending]
                summary.files_dispatched = len(futures)

                self._enter(log, summary, RunState.AWAITING)
                for completed, future in enumerate(as_completed(futures), start=1):
                    summary.results.append(future.result())
                    log.info("Progress: %d/%d files completed", completed, len(futures))
        else:
            self._enter(log, summary, RunState.AWAITING)

        for result in summary.results:
            if result.success:
                summary.files_succeeded += 1
            else:
                summary.files_failed += 1
            summary.records_processed += result.records_processed
        summary.duration_ms = int((time.perf_counter() - started) * 1000)
        self._enter(log, summary, RunState.AGGREGATED)

        record_batch_run("success")
        log.info(
            "Processing completed. Processed %d files (%d failed), %d records in %dms",
            summary.files_succeeded,
            summary.files_failed,
            summary.records_processed,
            summary.duration_ms,
            extra={
                "status": "completed",
                "duration_ms": summary.duration_ms,
                "records": summary.records_processed,
            },
        )
        return summary
