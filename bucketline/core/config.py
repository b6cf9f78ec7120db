"""
Configuration Management for the Object Store Facade

Provides validated configuration with sensible defaults.
Supports environment variable overrides.

Design:
- Immutable after validation
- Fail-fast on invalid configuration
- Type-safe with dataclasses
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from bucketline.core import constants as C
from bucketline.core.types import Result, Ok, Err


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """
    Object store client configuration.

    Shared read-only by every operation of a client instance; nothing in the
    library mutates it after construction.

    Attributes:
        access_key_id: AWS access key (None for IAM role / default chain).
        secret_access_key: AWS secret key (None for IAM role / default chain).
        bucket_name: Default bucket for the fixed-bucket client. Optional
            for the multi-bucket client, which takes the bucket per call.
        max_batch_size: Largest batch ``add_batch`` accepts. Must be > 0.
        upload_concurrency: Max simultaneous uploads per batch. Must be > 0.
        region: Region system name (``eu-west-1``). Used both to route
            requests and to build object URLs.
        endpoint_url: Custom endpoint for MinIO/R2 (None for AWS).
        session_token: Temporary session token for STS.
        connect_timeout_seconds: TCP connect timeout.
        read_timeout_seconds: Read operation timeout.
        max_pool_connections: HTTP connection pool size of the transport.

    Example:
        >>> config = ClientConfig(bucket_name="media", region="eu-west-1")
        >>> config.upload_concurrency
        5
    """

    access_key_id: Optional[str] = field(default=None, repr=False)
    secret_access_key: Optional[str] = field(default=None, repr=False)
    bucket_name: Optional[str] = None
    max_batch_size: int = C.MAX_BATCH_SIZE
    upload_concurrency: int = C.UPLOAD_CONCURRENCY
    region: str = C.DEFAULT_REGION
    endpoint_url: Optional[str] = None
    session_token: Optional[str] = field(default=None, repr=False)
    connect_timeout_seconds: int = C.CONNECT_TIMEOUT_SECONDS
    read_timeout_seconds: int = C.READ_TIMEOUT_SECONDS
    max_pool_connections: int = C.MAX_POOL_CONNECTIONS

    def __post_init__(self) -> None:
        """
        Validate configuration invariants.

        Pre-conditions (enforced):
        - max_batch_size > 0
        - upload_concurrency > 0
        - region is non-empty
        - timeouts and pool size > 0

        upload_concurrency above max_batch_size is accepted; the batch can
        simply never fill the window.

        Raises:
            ValueError: If any invariant is violated.
        """
        if self.max_batch_size <= 0:
            raise ValueError(f"max_batch_size must be > 0, got {self.max_batch_size}")
        if self.upload_concurrency <= 0:
            raise ValueError(
                f"upload_concurrency must be > 0, got {self.upload_concurrency}"
            )
        if not self.region or not self.region.strip():
            raise ValueError("region must be a non-empty region system name")
        if self.connect_timeout_seconds <= 0:
            raise ValueError("connect_timeout_seconds must be > 0")
        if self.read_timeout_seconds <= 0:
            raise ValueError("read_timeout_seconds must be > 0")
        if self.max_pool_connections <= 0:
            raise ValueError("max_pool_connections must be > 0")

    @classmethod
    def from_env(cls, prefix: str = C.ENV_PREFIX) -> Result[ClientConfig, str]:
        """
        Load configuration from environment variables.

        Environment Variables:
        - {prefix}_ACCESS_KEY_ID / AWS_ACCESS_KEY_ID
        - {prefix}_SECRET_ACCESS_KEY / AWS_SECRET_ACCESS_KEY
        - AWS_SESSION_TOKEN
        - {prefix}_BUCKET: Default bucket name
        - {prefix}_REGION: Region system name (default: eu-west-1)
        - {prefix}_ENDPOINT_URL: Custom endpoint URL
        - {prefix}_MAX_BATCH_SIZE: Batch size limit (default: 50)
        - {prefix}_UPLOAD_CONCURRENCY: Uploads in flight (default: 5)
        - {prefix}_CONNECT_TIMEOUT / {prefix}_READ_TIMEOUT: Seconds

        Returns:
            Ok(ClientConfig) or Err with a description of the bad value.
        """
        def _get(key: str, default: str = "") -> str:
            return os.environ.get(f"{prefix}_{key}", default)

        def _get_int(key: str, default: int) -> int:
            val = _get(key)
            return int(val) if val else default

        try:
            return Ok(cls(
                access_key_id=_get("ACCESS_KEY_ID") or os.environ.get("AWS_ACCESS_KEY_ID"),
                secret_access_key=(
                    _get("SECRET_ACCESS_KEY") or os.environ.get("AWS_SECRET_ACCESS_KEY")
                ),
                session_token=os.environ.get("AWS_SESSION_TOKEN"),
                bucket_name=_get("BUCKET") or None,
                region=_get("REGION", C.DEFAULT_REGION),
                endpoint_url=_get("ENDPOINT_URL") or None,
                max_batch_size=_get_int("MAX_BATCH_SIZE", C.MAX_BATCH_SIZE),
                upload_concurrency=_get_int("UPLOAD_CONCURRENCY", C.UPLOAD_CONCURRENCY),
                connect_timeout_seconds=_get_int(
                    "CONNECT_TIMEOUT", C.CONNECT_TIMEOUT_SECONDS
                ),
                read_timeout_seconds=_get_int("READ_TIMEOUT", C.READ_TIMEOUT_SECONDS),
            ))
        except (ValueError, TypeError) as e:
            return Err(f"Configuration error: {e}")

    def validate(self) -> Result[None, str]:
        """Validate invariants that depend on how the config is used."""
        if self.access_key_id and not self.secret_access_key:
            return Err("secret_access_key is required when access_key_id is set")
        if self.secret_access_key and not self.access_key_id:
            return Err("access_key_id is required when secret_access_key is set")
        return Ok(None)

    def require_bucket(self) -> Result[str, str]:
        """Default bucket, for the fixed-bucket client shape."""
        if not self.bucket_name:
            return Err("bucket_name is not configured")
        return Ok(self.bucket_name)

    def get_boto_kwargs(self) -> Dict[str, Any]:
        """
        Keyword arguments for ``aioboto3.Session().client("s3", ...)``.

        The botocore ``Config`` object is built by the transport; this only
        carries plain values.
        """
        kwargs: Dict[str, Any] = {"region_name": self.region}

        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url

        if self.access_key_id and self.secret_access_key:
            kwargs["aws_access_key_id"] = self.access_key_id
            kwargs["aws_secret_access_key"] = self.secret_access_key

        if self.session_token:
            kwargs["aws_session_token"] = self.session_token

        return kwargs
