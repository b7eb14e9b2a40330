"""S3-backed listing and line-oriented reading of review files."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Protocol

from boto3.session import Session
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import ConfigurationError, ObjectListingError, ObjectReadError
from ..schemas.entities import ObjectDescriptor
from ..utils.config import GlobalSettings, get_settings
from ..utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "S3ObjectStore"})

_S3_ERRORS = (BotoCoreError, ClientError)


class ObjectStore(Protocol):
    """What the pipeline needs from an object store."""

    def list_objects(
        self, bucket: str | None = None, prefix: str | None = None
    ) -> list[ObjectDescriptor]: ...

    def open_lines(
        self, key: str, bucket: str | None = None
    ) -> AbstractContextManager[Iterator[str]]: ...


def create_s3_client(settings: GlobalSettings) -> Any:
    """Create a boto3 S3 client from the AWS session settings."""

    session = Session(**settings.aws.session_kwargs())
    return session.client("s3", endpoint_url=settings.aws.endpoint_url)


class S3ObjectStore:
    """Lists ``*.jl`` objects under a prefix and streams them line by line."""

    def __init__(
        self,
        client: Any,
        *,
        bucket: str,
        prefix: str = "",
        suffix: str = ".jl",
        page_size: int = 1000,
    ) -> None:
        self._client = client
        self.bucket = bucket
        self.prefix = prefix
        self.suffix = suffix
        self._page_size = page_size

    @classmethod
    def from_settings(cls, settings: GlobalSettings | None = None) -> S3ObjectStore:
        settings = settings or get_settings()
        if not settings.s3.bucket:
            raise ConfigurationError("S3 bucket is not configured (set REVIEWS_S3__BUCKET)")
        return cls(
            create_s3_client(settings),
            bucket=settings.s3.bucket,
            prefix=settings.s3.prefix,
            suffix=settings.s3.suffix,
            page_size=settings.s3.page_size,
        )

    def list_objects(
        self, bucket: str | None = None, prefix: str | None = None
    ) -> list[ObjectDescriptor]:
        """
        Enumerate every object under the prefix whose key ends with the suffix.

        Continuation tokens are followed until the listing is exhausted. The
        result is fully materialized; a partial listing is never returned.

        Raises:
            ObjectListingError: If any page cannot be fetched
        """
        bucket = bucket or self.bucket
        prefix = self.prefix if prefix is None else prefix

        descriptors: list[ObjectDescriptor] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            pages = paginator.paginate(
                Bucket=bucket,
                Prefix=prefix,
                PaginationConfig={"PageSize": self._page_size},
            )
            for page in pages:
                for entry in page.get("Contents", []):
                    key = entry["Key"]
                    if not key.endswith(self.suffix):
                        continue
                    descriptors.append(
                        ObjectDescriptor(
                            key=key,
                            last_modified=entry.get("LastModified"),
                            size=int(entry.get("Size", 0)),
                        )
                    )
        except _S3_ERRORS as exc:
            logger.error(
                "Failed to list objects in s3://%s/%s", bucket, prefix, extra={"status": "error"}
            )
            raise ObjectListingError(bucket, prefix, str(exc)) from exc

        logger.info(
            "Found %d %s files in s3://%s/%s",
            len(descriptors),
            self.suffix,
            bucket,
            prefix,
            extra={"status": "listed"},
        )
        return descriptors

    @contextmanager
    def open_lines(self, key: str, bucket: str | None = None) -> Iterator[Iterator[str]]:
        """
        Open ``key`` and yield an iterator over its decoded text lines.

        The underlying body is closed however the caller's block exits.

        Raises:
            ObjectReadError: If the object cannot be opened, or the stream
                breaks while it is being read
        """
        bucket = bucket or self.bucket
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except _S3_ERRORS as exc:
            raise ObjectReadError(key, str(exc)) from exc

        body = response["Body"]
        try:
            yield _decode_lines(key, body)
        finally:
            body.close()


def _decode_lines(key: str, body: Any) -> Iterator[str]:
    """Decode a streaming body into text lines, translating transport failures."""

    first = True
    try:
        for raw_line in body.iter_lines():
            line = raw_line.decode("utf-8", errors="replace")
            if first:
                line = line.lstrip("\ufeff")
                first = False
            yield line
    except (*_S3_ERRORS, OSError) as exc:
        raise ObjectReadError(key, str(exc)) from exc
