"""
Transport doubles shared by the client tests.

RecordingTransport scripts statuses, delays and failures per key and counts
how many requests are inside the transport at once. GatedTransport holds
every put until the test opens its gate.
"""

from __future__ import annotations

import asyncio
import io
from typing import BinaryIO, Dict, Iterable, List, Optional, Sequence, Tuple

from bucketline.core.types import AccessPolicy
from bucketline.storage.transport import (
    DeleteObjectResponse,
    DeleteObjectsResponse,
    GetObjectResponse,
    PutObjectResponse,
)


class RecordingTransport:
    """Scriptable transport with an in-flight counter."""

    def __init__(
        self,
        put_status: int = 200,
        delete_status: int = 204,
        put_statuses: Optional[Dict[str, int]] = None,
        delays: Optional[Dict[str, float]] = None,
        default_delay: float = 0.0,
        failing_keys: Iterable[str] = (),
        delete_objects_response: Optional[DeleteObjectsResponse] = None,
    ) -> None:
        self.put_status = put_status
        self.delete_status = delete_status
        self.put_statuses = put_statuses or {}
        self.delays = delays or {}
        self.default_delay = default_delay
        self.failing_keys = set(failing_keys)
        self.delete_objects_response = delete_objects_response

        self.calls: List[Tuple] = []
        self.bodies: Dict[str, bytes] = {}
        self.in_flight = 0
        self.peak_in_flight = 0

    async def _enter(self, key: str) -> None:
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(key, self.default_delay))
            if key in self.failing_keys:
                raise ConnectionError(f"Connection reset while sending {key}")
        finally:
            self.in_flight -= 1

    async def put_object(
        self,
        bucket_name: str,
        key: str,
        body: BinaryIO,
        acl: AccessPolicy,
    ) -> PutObjectResponse:
        self.calls.append(("put_object", bucket_name, key, acl))
        self.bodies[key] = body.read()
        await self._enter(key)
        return PutObjectResponse(
            status_code=self.put_statuses.get(key, self.put_status),
            content_length=0,
        )

    async def get_object(self, bucket_name: str, key: str) -> GetObjectResponse:
        self.calls.append(("get_object", bucket_name, key))
        await self._enter(key)
        data = self.bodies.get(key, b"")
        return GetObjectResponse(status_code=200, body=io.BytesIO(data), content_length=len(data))

    async def delete_object(self, bucket_name: str, key: str) -> DeleteObjectResponse:
        self.calls.append(("delete_object", bucket_name, key))
        await self._enter(key)
        return DeleteObjectResponse(status_code=self.delete_status)

    async def delete_objects(
        self,
        bucket_name: str,
        keys: Sequence[str],
    ) -> DeleteObjectsResponse:
        self.calls.append(("delete_objects", bucket_name, tuple(keys)))
        for key in keys:
            await self._enter(key)
        if self.delete_objects_response is not None:
            return self.delete_objects_response
        return DeleteObjectsResponse(status_code=200, deleted=tuple(keys))

    def keys_called(self, method: str) -> List[str]:
        return [call[2] for call in self.calls if call[0] == method]


class GatedTransport(RecordingTransport):
    """Puts block until ``gate`` is set."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.gate = asyncio.Event()

    async def put_object(
        self,
        bucket_name: str,
        key: str,
        body: BinaryIO,
        acl: AccessPolicy,
    ) -> PutObjectResponse:
        self.calls.append(("put_object", bucket_name, key, acl))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await self.gate.wait()
        finally:
            self.in_flight -= 1
        return PutObjectResponse(status_code=self.put_status)


def stream(data: bytes = b"payload") -> io.BytesIO:
    return io.BytesIO(data)
