"""Ingestion pipeline and its single "process all new files" entry point."""

from __future__ import annotations

from ..models.repository import ProcessedFileLedger, ReviewStore
from ..schemas.entities import BatchSummary
from ..storage.object_store import S3ObjectStore
from ..utils.config import GlobalSettings, get_settings
from .file_processor import FileProcessor
from .orchestrator import BatchOrchestrator
from .parser import parse_line, validate_record
from .transformer import parse_review_date, transform


def build_orchestrator(settings: GlobalSettings | None = None) -> BatchOrchestrator:
    """Wire the S3 store, database store and ledger into an orchestrator."""

    settings = settings or get_settings()
    return BatchOrchestrator(
        S3ObjectStore.from_settings(settings),
        ReviewStore(),
        ProcessedFileLedger(),
        max_concurrency=settings.processing.max_concurrency,
    )


def process_new_files(settings: GlobalSettings | None = None) -> BatchSummary:
    """Run one batch over every file not yet recorded in the ledger."""

    return build_orchestrator(settings).run()


__all__ = [
    "BatchOrchestrator",
    "FileProcessor",
    "build_orchestrator",
    "parse_line",
    "parse_review_date",
    "process_new_files",
    "transform",
    "validate_record",
]
