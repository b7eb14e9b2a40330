"""Custom exceptions for Review_Ingestor."""

from __future__ import annotations


class ReviewIngestorError(Exception):
    """Base exception for all Review_Ingestor errors."""

    pass


class ConfigurationError(ReviewIngestorError):
    """Raised when configuration is invalid or missing."""

    pass


class ObjectListingError(ReviewIngestorError):
    """Raised when the object store cannot be listed; aborts the whole run."""

    def __init__(self, bucket: str, prefix: str, reason: str) -> None:
        super().__init__(f"Failed to list objects in s3://{bucket}/{prefix}: {reason}")
        self.bucket = bucket
        self.prefix = prefix


class ObjectReadError(ReviewIngestorError):
    """Raised when an object cannot be opened or read to completion."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Failed to read object '{key}': {reason}")
        self.key = key


class ParseError(ReviewIngestorError):
    """Raised when a line is not a well-formed review document."""

    pass


class RecordValidationError(ReviewIngestorError):
    """Raised when a decoded record lacks one of its required fields."""

    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(missing_fields)}")
        self.missing_fields = missing_fields


class TransformationError(ReviewIngestorError):
    """Raised when a record cannot be mapped to storage entities."""

    pass


class PersistenceError(ReviewIngestorError):
    """Raised when an upsert or ledger write fails at the database layer."""

    pass
