"""
Storage Module: Object Store Client and Transports
==================================================

Provides:
- Transport protocol and response types
- In-memory transport for development/testing
- aioboto3 transport for S3-compatible services
- Bounded batch scheduler
- Multi-bucket and fixed-bucket clients

Example:
    >>> # Development (in-memory)
    >>> client = ObjectStoreClient(ClientConfig(), InMemoryTransport())

    >>> # Production (owned S3 transport)
    >>> async with ObjectStoreClient(ClientConfig(region="eu-west-1")) as client:
    ...     await client.add("media", "folder/pic.jpg", stream)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bucketline.storage.transport import (
    ObjectStorageTransport,
    PutObjectResponse,
    GetObjectResponse,
    DeleteObjectResponse,
    DeleteObjectsResponse,
    DeleteError,
)
from bucketline.storage.memory import InMemoryTransport
from bucketline.storage.scheduler import BoundedScheduler, SchedulerStats
from bucketline.storage.client import ObjectStoreClient, BucketClient, BatchOutcome

# Lazy import for the production transport
if TYPE_CHECKING:
    from bucketline.storage.s3_transport import S3Transport


def __getattr__(name: str):
    if name == "S3Transport":
        from bucketline.storage.s3_transport import S3Transport

        return S3Transport
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ObjectStorageTransport",
    "PutObjectResponse",
    "GetObjectResponse",
    "DeleteObjectResponse",
    "DeleteObjectsResponse",
    "DeleteError",
    "InMemoryTransport",
    "BoundedScheduler",
    "SchedulerStats",
    "ObjectStoreClient",
    "BucketClient",
    "BatchOutcome",
    "S3Transport",
]
