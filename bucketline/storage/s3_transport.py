"""
S3-Compatible Transport
=======================

aioboto3 implementation of ObjectStorageTransport for AWS S3, MinIO,
Cloudflare R2, and other S3-compatible services.

Design Principles:
------------------
1. **One call, one request**: no retries beyond what botocore is
   configured with, no buffering of request bodies
2. **Plain responses**: botocore response dicts are reduced to the
   response dataclasses the client understands
3. **Exceptions pass through**: ClientError and connection errors are
   raised to the caller, which converts them to Err values

Thread Safety:
--------------
- aiobotocore clients are safe for concurrent async operations
- The only mutable state is the entered client handle, set by connect()
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Dict, Optional, Sequence, TYPE_CHECKING

import aioboto3
from botocore.config import Config

from bucketline.core.config import ClientConfig
from bucketline.core.types import AccessPolicy
from bucketline.storage.transport import (
    DeleteError,
    DeleteObjectResponse,
    DeleteObjectsResponse,
    GetObjectResponse,
    PutObjectResponse,
)

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

logger = logging.getLogger(__name__)


def _status_code(response: Dict[str, Any]) -> int:
    return int(response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0))


def _header_int(response: Dict[str, Any], name: str) -> int:
    headers = response.get("ResponseMetadata", {}).get("HTTPHeaders", {})
    try:
        return int(headers.get(name, 0))
    except (TypeError, ValueError):
        return 0


class S3Transport:
    """
    Transport over an aioboto3 S3 client.

    Example:
        >>> config = ClientConfig(region="eu-west-1")
        >>> async with S3Transport(config) as transport:
        ...     await transport.delete_object("media", "folder/pic.jpg")
    """

    __slots__ = ("_config", "_session", "_client_cm", "_client")

    def __init__(self, config: ClientConfig, session: Optional[aioboto3.Session] = None) -> None:
        """
        Args:
            config: Client configuration (credentials, region, endpoint).
            session: Pre-built aioboto3 session; one is created from the
                configured credentials when omitted.

        Note:
            Call ``connect()`` (or use ``async with``) before issuing requests.
        """
        self._config = config
        self._session = session
        self._client_cm: Any = None
        self._client: Optional["S3Client"] = None

    # -------------------------------------------------------------------------
    # CONNECTION MANAGEMENT
    # -------------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """
        Create the aioboto3 session and enter its S3 client.

        Safe to call more than once; later calls are no-ops.
        """
        if self._client is not None:
            return

        if self._session is None:
            self._session = aioboto3.Session()

        client_config = Config(
            max_pool_connections=self._config.max_pool_connections,
            connect_timeout=self._config.connect_timeout_seconds,
            read_timeout=self._config.read_timeout_seconds,
        )

        self._client_cm = self._session.client(
            "s3",
            config=client_config,
            **self._config.get_boto_kwargs(),
        )
        self._client = await self._client_cm.__aenter__()
        logger.debug(
            "S3 client opened",
            extra={
                "region": self._config.region,
                "endpoint_url": self._config.endpoint_url,
            },
        )

    async def close(self) -> None:
        """
        Close the S3 client and release its connection pool.

        Safe to call multiple times.
        """
        if self._client_cm is not None:
            cm, self._client_cm, self._client = self._client_cm, None, None
            await cm.__aexit__(None, None, None)

    async def __aenter__(self) -> S3Transport:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _require_client(self) -> "S3Client":
        if self._client is None:
            raise RuntimeError("S3 transport is not connected; call connect() first")
        return self._client

    # -------------------------------------------------------------------------
    # OPERATIONS
    # -------------------------------------------------------------------------

    async def put_object(
        self,
        bucket_name: str,
        key: str,
        body: BinaryIO,
        acl: AccessPolicy,
    ) -> PutObjectResponse:
        client = self._require_client()
        response = await client.put_object(
            Bucket=bucket_name,
            Key=key,
            Body=body,
            ACL=acl.value,
        )
        return PutObjectResponse(
            status_code=_status_code(response),
            content_length=_header_int(response, "content-length"),
            etag=response.get("ETag", "").strip('"') or None,
            version_id=response.get("VersionId"),
        )

    async def get_object(self, bucket_name: str, key: str) -> GetObjectResponse:
        client = self._require_client()
        response = await client.get_object(Bucket=bucket_name, Key=key)
        return GetObjectResponse(
            status_code=_status_code(response),
            body=response["Body"],
            content_length=response.get("ContentLength", 0),
            content_type=response.get("ContentType", "application/octet-stream"),
        )

    async def delete_object(self, bucket_name: str, key: str) -> DeleteObjectResponse:
        client = self._require_client()
        response = await client.delete_object(Bucket=bucket_name, Key=key)
        return DeleteObjectResponse(status_code=_status_code(response))

    async def delete_objects(
        self,
        bucket_name: str,
        keys: Sequence[str],
    ) -> DeleteObjectsResponse:
        """
        Delete up to 1000 keys in one DeleteObjects request.

        The request is sent in verbose mode so every deleted key is echoed
        back; S3 answers 200 even when some keys fail, listing them under
        ``Errors``.
        """
        client = self._require_client()
        response = await client.delete_objects(
            Bucket=bucket_name,
            Delete={
                "Objects": [{"Key": key} for key in keys],
                "Quiet": False,
            },
        )
        return DeleteObjectsResponse(
            status_code=_status_code(response),
            deleted=tuple(obj["Key"] for obj in response.get("Deleted", [])),
            errors=tuple(
                DeleteError(
                    key=err.get("Key", ""),
                    code=err.get("Code", ""),
                    message=err.get("Message", ""),
                )
                for err in response.get("Errors", [])
            ),
        )
