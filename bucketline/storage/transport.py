"""
Object-Storage Transport Protocol
=================================

Structural interface (PEP 544) the client talks to. A transport implements
the wire protocol for one provider and reports plain response values; it may
raise on transport-level failures, and the client turns those into Err
values.

Implementations:
- S3Transport: aioboto3 client for AWS S3, MinIO, R2
- InMemoryTransport: dict-backed, for development and tests

Concurrency:
-----------
Transports must be safe for concurrent use by many coroutines of the same
event loop. Cancellation is delivered by cancelling the awaiting task.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    BinaryIO,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

from bucketline.core.types import AccessPolicy


# =============================================================================
# RESPONSES
# =============================================================================

@dataclass(frozen=True, slots=True)
class PutObjectResponse:
    """Outcome of a single put request."""
    status_code: int
    content_length: int = 0
    etag: Optional[str] = None
    version_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class GetObjectResponse:
    """
    Outcome of a single get request.

    ``body`` is the live response stream. Whoever receives it must read and
    close it.
    """
    status_code: int
    body: Any
    content_length: int = 0
    content_type: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class DeleteObjectResponse:
    """Outcome of a single delete request."""
    status_code: int


@dataclass(frozen=True, slots=True)
class DeleteError:
    """Per-key failure reported inside a batch delete response."""
    key: str
    code: str = ""
    message: str = ""

    def __str__(self) -> str:
        return f"{self.key}: {self.code} {self.message}".rstrip()


@dataclass(frozen=True, slots=True)
class DeleteObjectsResponse:
    """Outcome of a batch delete request."""
    status_code: int
    deleted: tuple[str, ...] = field(default_factory=tuple)
    errors: tuple[DeleteError, ...] = field(default_factory=tuple)


# =============================================================================
# TRANSPORT PROTOCOL
# =============================================================================

@runtime_checkable
class ObjectStorageTransport(Protocol):
    """
    Wire-level operations the client relies on.

    Every method issues exactly one provider request.
    """

    async def put_object(
        self,
        bucket_name: str,
        key: str,
        body: BinaryIO,
        acl: AccessPolicy,
    ) -> PutObjectResponse:
        """Upload ``body`` under ``key`` with the given canned ACL."""
        ...

    async def get_object(self, bucket_name: str, key: str) -> GetObjectResponse:
        """Start downloading ``key``; the body is returned unread."""
        ...

    async def delete_object(self, bucket_name: str, key: str) -> DeleteObjectResponse:
        """Delete one object."""
        ...

    async def delete_objects(
        self,
        bucket_name: str,
        keys: Sequence[str],
    ) -> DeleteObjectsResponse:
        """Delete many objects in one request."""
        ...
