"""Object store access for review files."""

from .object_store import ObjectStore, S3ObjectStore, create_s3_client

__all__ = ["ObjectStore", "S3ObjectStore", "create_s3_client"]
