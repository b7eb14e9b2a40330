"""Pipe-delimited structured logging for runs, files and lines."""

from __future__ import annotations

import logging
import sys
from threading import Lock
from typing import TYPE_CHECKING, Any, Final

from .config import get_settings

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..schemas.entities import ProcessingResult

# Every record renders the same six context columns.
LOG_FORMAT: Final[str] = (
    "%(asctime)s | %(levelname)s | %(name)s | "
    "component=%(component)s | run_id=%(run_id)s | object_key=%(object_key)s | "
    "status=%(status)s | duration_ms=%(duration_ms)s | records=%(records)s | %(message)s"
)

DEFAULT_CONTEXT: Final[dict[str, str]] = {
    "component": "-",
    "run_id": "-",
    "object_key": "-",
    "status": "-",
    "duration_ms": "-",
    "records": "-",
}

_LOG_CONFIGURED = False
_CONFIG_LOCK: Final = Lock()

NOISY_LOGGERS: Final[tuple[str, ...]] = ("botocore", "boto3", "s3transfer", "urllib3")


class ContextualFormatter(logging.Formatter):
    """Fill context columns a record was emitted without with their defaults."""

    def __init__(self, fmt: str, defaults: dict[str, str] | None = None) -> None:
        super().__init__(fmt)
        self._defaults = defaults or {}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        for key, value in self._defaults.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return super().format(record)


def _configure_root_logger() -> None:
    """Install the stdout handler and level from ``REVIEWS_LOG_LEVEL`` once per process."""

    global _LOG_CONFIGURED
    with _CONFIG_LOCK:
        if _LOG_CONFIGURED:
            return

        settings = get_settings()
        resolved_level = getattr(logging, settings.log_level.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(resolved_level)

        formatter = ContextualFormatter(LOG_FORMAT, DEFAULT_CONTEXT)

        if not root_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(resolved_level)
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)
        else:
            for handler in root_logger.handlers:
                handler.setFormatter(formatter)

        # The AWS SDK logs every request below WARNING.
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(resolved_level, logging.WARNING))

        _LOG_CONFIGURED = True


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Adapter whose bound context is overridden by per-call ``extra``."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:  # type: ignore[override]
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **context: Any) -> StructuredLoggerAdapter:
        """Return an adapter whose defaults also carry ``context``."""

        return StructuredLoggerAdapter(self.logger, {**(self.extra or {}), **context})


def setup_logger(
    name: str,
    *,
    level: str | None = None,
    context: dict[str, Any] | None = None,
) -> StructuredLoggerAdapter:
    """Return a structured adapter for ``name``.

    Args:
        name: Logger name, usually the module's ``__name__``.
        level: Level for this logger only; the root level comes from settings.
        context: Columns bound to every entry, typically ``{"component": ...}``.
    """

    _configure_root_logger()
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    adapter_context: dict[str, Any] = dict(DEFAULT_CONTEXT)
    if context:
        adapter_context.update(context)

    return StructuredLoggerAdapter(logger, adapter_context)


def log_file_result(
    logger: logging.Logger | logging.LoggerAdapter,
    result: ProcessingResult,
    *,
    run_id: str | None = None,
) -> None:
    """
    Log the outcome of one file's processing attempt with structured context.

    Args:
        logger: Logger instance
        result: Per-file processing result
        run_id: Identifier of the batch run that dispatched the file
    """
    status = "success" if result.success else "error"
    context: dict[str, Any] = {
        "run_id": run_id or "-",
        "object_key": result.filename,
        "status": status,
        "duration_ms": result.duration_ms,
        "records": result.records_processed,
    }

    if result.success:
        logger.info(
            "Processed file: %d records, %d lines skipped",
            result.records_processed,
            result.lines_skipped,
            extra=context,
        )
    else:
        logger.error(
            "File processing failed after %d records: %s",
            result.records_processed,
            result.error,
            extra=context,
        )
