"""
In-Memory Transport: dict-backed object storage for development and tests.

Mirrors S3 behaviour where the client can observe it:
- missing keys raise ``botocore`` ``ClientError`` with code ``NoSuchKey``
- deleting a missing key succeeds with 204, as S3 does
- batch delete echoes every requested key under ``deleted``
"""

from __future__ import annotations

import asyncio
import hashlib
import io
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Sequence

from botocore.exceptions import ClientError

from bucketline.core.types import AccessPolicy
from bucketline.storage.transport import (
    DeleteObjectResponse,
    DeleteObjectsResponse,
    GetObjectResponse,
    PutObjectResponse,
)


@dataclass(frozen=True, slots=True)
class StoredObject:
    """Object held by the in-memory transport."""
    data: bytes
    acl: AccessPolicy
    etag: str


def _no_such_key(bucket_name: str, key: str, operation: str) -> ClientError:
    return ClientError(
        {
            "Error": {
                "Code": "NoSuchKey",
                "Message": "The specified key does not exist.",
                "Key": key,
                "BucketName": bucket_name,
            },
            "ResponseMetadata": {"HTTPStatusCode": 404},
        },
        operation,
    )


class InMemoryTransport:
    """
    In-memory object storage keyed by (bucket, key).

    Example:
        transport = InMemoryTransport()
        client = ObjectStoreClient(ClientConfig(), transport)
        await client.add("media", "folder/pic.jpg", io.BytesIO(b"..."))
    """

    __slots__ = ("_objects", "_lock")

    def __init__(self) -> None:
        self._objects: Dict[tuple[str, str], StoredObject] = {}
        self._lock = asyncio.Lock()

    async def put_object(
        self,
        bucket_name: str,
        key: str,
        body: BinaryIO,
        acl: AccessPolicy,
    ) -> PutObjectResponse:
        # Read without closing: the stream belongs to the caller
        data = body.read()
        etag = hashlib.md5(data).hexdigest()
        async with self._lock:
            self._objects[(bucket_name, key)] = StoredObject(data=data, acl=acl, etag=etag)
        return PutObjectResponse(status_code=200, content_length=0, etag=etag)

    async def get_object(self, bucket_name: str, key: str) -> GetObjectResponse:
        async with self._lock:
            stored = self._objects.get((bucket_name, key))
        if stored is None:
            raise _no_such_key(bucket_name, key, "GetObject")
        return GetObjectResponse(
            status_code=200,
            body=io.BytesIO(stored.data),
            content_length=len(stored.data),
        )

    async def delete_object(self, bucket_name: str, key: str) -> DeleteObjectResponse:
        async with self._lock:
            self._objects.pop((bucket_name, key), None)
        return DeleteObjectResponse(status_code=204)

    async def delete_objects(
        self,
        bucket_name: str,
        keys: Sequence[str],
    ) -> DeleteObjectsResponse:
        async with self._lock:
            for key in keys:
                self._objects.pop((bucket_name, key), None)
        return DeleteObjectsResponse(status_code=200, deleted=tuple(dict.fromkeys(keys)))

    # -------------------------------------------------------------------------
    # INSPECTION
    # -------------------------------------------------------------------------

    def contains(self, bucket_name: str, key: str) -> bool:
        return (bucket_name, key) in self._objects

    def read(self, bucket_name: str, key: str) -> bytes:
        return self._objects[(bucket_name, key)].data

    def acl_of(self, bucket_name: str, key: str) -> AccessPolicy:
        return self._objects[(bucket_name, key)].acl

    def keys(self, bucket_name: str) -> List[str]:
        return sorted(k for b, k in self._objects if b == bucket_name)

    def __len__(self) -> int:
        return len(self._objects)
