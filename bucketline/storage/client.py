"""
Object Store Client
===================

Result-returning facade over an ObjectStorageTransport.

Two shapes are provided:
- ObjectStoreClient: bucket passed on every call (multi-bucket)
- BucketClient: bucket fixed at construction, delegating to the above

Every public coroutine returns a Result and never raises for transport
errors, unexpected status codes, oversized batches or cancellation. Task
cancellation (``asyncio.CancelledError``) is not a failure outcome and
propagates normally.

Operations:
-----------
| Operation   | Requests | Success when                                 |
|-------------|----------|----------------------------------------------|
| add         | 1 put    | status 200                                   |
| add_batch   | n puts   | per item, as add                             |
| get         | 1 get    | transport returns a response                 |
| delete      | 1 delete | status 200 or 204                            |
| delete_many | 1 batch  | status 200/204 and every key confirmed       |
"""

from __future__ import annotations

from functools import partial
from typing import Any, BinaryIO, Iterable, List, Optional, Sequence, Tuple, Union

from bucketline.core import constants as C
from bucketline.core.cancellation import CancellationToken, run_cancellable
from bucketline.core.config import ClientConfig
from bucketline.core.errors import ObjectStoreError, Operation, OperationCancelledError
from bucketline.core.types import (
    DEFAULT_ACCESS_POLICY,
    AccessPolicy,
    Err,
    Ok,
    Result,
    UploadItem,
)
from bucketline.observability.logging import StructuredLogger
from bucketline.storage.scheduler import BoundedScheduler
from bucketline.storage.transport import ObjectStorageTransport

logger = StructuredLogger(__name__)

BatchItem = Union[UploadItem, Tuple[str, BinaryIO]]
BatchOutcome = List[Result[str, ObjectStoreError]]


def _config_from_env(prefix: str) -> Result[ClientConfig, ObjectStoreError]:
    loaded = ClientConfig.from_env(prefix).flat_map(
        lambda config: config.validate().map(lambda _: config)
    )
    if loaded.is_err():
        return Err(ObjectStoreError.configuration(loaded.error, prefix=prefix))
    return loaded


class ObjectStoreClient:
    """
    Multi-bucket object store client.

    Holds no state besides its configuration and transport; instances can be
    shared by any number of concurrent callers.

    Example:
        >>> config = ClientConfig(region="eu-west-1")
        >>> async with ObjectStoreClient(config) as client:
        ...     result = await client.add("media", "folder/pic.jpg", stream)
        ...     if result.is_ok():
        ...         print(result.unwrap())
        https://s3.eu-west-1.amazonaws.com/media/folder/pic.jpg
    """

    __slots__ = ("_config", "_transport", "_owns_transport")

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[ObjectStorageTransport] = None,
    ) -> None:
        """
        Args:
            config: Client configuration.
            transport: Transport to issue requests through. When omitted an
                S3Transport is built from ``config`` and owned by the client:
                ``async with`` connects and closes it.
        """
        self._config = config
        if transport is None:
            from bucketline.storage.s3_transport import S3Transport

            transport = S3Transport(config)
            self._owns_transport = True
        else:
            self._owns_transport = False
        self._transport = transport

    @classmethod
    def from_env(
        cls,
        prefix: str = C.ENV_PREFIX,
    ) -> Result[ObjectStoreClient, ObjectStoreError]:
        """
        Build a client with an owned S3 transport from environment variables.

        Returns:
            Ok(client), or Err with code CONFIGURATION_ERROR naming the bad
            setting.
        """
        config = _config_from_env(prefix)
        if config.is_err():
            return config
        return Ok(cls(config.unwrap()))

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def transport(self) -> ObjectStorageTransport:
        return self._transport

    # -------------------------------------------------------------------------
    # LIFECYCLE
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        if self._owns_transport:
            await self._transport.connect()

    async def close(self) -> None:
        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> ObjectStoreClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # UPLOAD
    # -------------------------------------------------------------------------

    async def add(
        self,
        bucket_name: str,
        key: str,
        stream: BinaryIO,
        policy: AccessPolicy = DEFAULT_ACCESS_POLICY,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[str, ObjectStoreError]:
        """
        Upload one object.

        Args:
            bucket_name: Target bucket.
            key: Object key; may include subfolders (``folder/file1.jpg``).
            stream: Readable body. Read, never closed.
            policy: Canned ACL, public-read by default.
            cancel_token: Shared cancellation signal.

        Returns:
            Ok(url) where url is ``get_url_path(bucket_name, key)``, or Err.
        """
        fields = self._log_fields(bucket_name, key)
        try:
            logger.info("s3.add.request", **fields)

            response = await run_cancellable(
                partial(self._transport.put_object, bucket_name, key, stream, policy),
                cancel_token,
            )

            logger.info(
                "s3.add.response",
                **fields,
                content_length=response.content_length,
                status_code=response.status_code,
            )

            if response.status_code == C.STATUS_OK:
                return Ok(self.get_url_path(bucket_name, key))

            return Err(ObjectStoreError.status_failure(
                Operation.ADD, bucket_name, key, response.status_code,
            ))
        except OperationCancelledError:
            return self._cancelled(Operation.ADD, bucket_name, key)
        except Exception as e:
            return self._transport_failure(Operation.ADD, bucket_name, key, e)

    async def add_batch(
        self,
        bucket_name: str,
        items: Iterable[BatchItem],
        policy: AccessPolicy = DEFAULT_ACCESS_POLICY,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BatchOutcome:
        """
        Upload many objects with at most ``upload_concurrency`` in flight.

        A batch larger than ``max_batch_size`` is rejected as a whole: the
        result is a single Err and nothing is uploaded. Otherwise every item
        is attempted exactly once, failures do not stop the rest, and the
        outcomes come back in completion order (not input order). Success
        values are URLs; correlate them with keys through the URL or, for
        failures, through ``error.key``.

        Args:
            bucket_name: Target bucket.
            items: UploadItem values or ``(key, stream)`` tuples.
            policy: Canned ACL for every object.
            cancel_token: Signal shared by every upload of the batch.

        Returns:
            One Result per item, in completion order.
        """
        batch = [item if isinstance(item, UploadItem) else UploadItem.of(item) for item in items]
        limit = self._config.max_batch_size

        if len(batch) > limit:
            error = ObjectStoreError.batch_limit_exceeded(len(batch), limit)
            logger.warning(
                "s3.batch.rejected",
                bucket_name=bucket_name,
                count=len(batch),
                limit=limit,
                error_id=error.error_id,
            )
            return [Err(error)]

        async def _upload(item: UploadItem) -> Result[str, ObjectStoreError]:
            return await self.add(
                bucket_name, item.key, item.stream, policy, cancel_token=cancel_token,
            )

        scheduler: BoundedScheduler[UploadItem, Result[str, ObjectStoreError]] = (
            BoundedScheduler(self._config.upload_concurrency)
        )
        outcomes = await scheduler.run(batch, _upload)

        failed = sum(1 for outcome in outcomes if outcome.is_err())
        logger.info(
            "s3.batch.completed",
            bucket_name=bucket_name,
            count=len(outcomes),
            succeeded=len(outcomes) - failed,
            failed=failed,
            peak_in_flight=scheduler.stats.peak_in_flight,
        )
        return outcomes

    # -------------------------------------------------------------------------
    # DOWNLOAD
    # -------------------------------------------------------------------------

    async def get(
        self,
        bucket_name: str,
        key: str,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[Any, ObjectStoreError]:
        """
        Download one object.

        Returns:
            Ok(body) with the live response stream; the caller must read and
            close it. A missing key is an Err like any other transport
            failure (``error.context["error_code"] == "NoSuchKey"`` for S3).
        """
        fields = self._log_fields(bucket_name, key)
        try:
            logger.info("s3.get.request", **fields)

            response = await run_cancellable(
                partial(self._transport.get_object, bucket_name, key),
                cancel_token,
            )

            logger.info(
                "s3.get.response",
                **fields,
                content_length=response.content_length,
                status_code=response.status_code,
            )
            return Ok(response.body)
        except OperationCancelledError:
            return self._cancelled(Operation.GET, bucket_name, key)
        except Exception as e:
            return self._transport_failure(Operation.GET, bucket_name, key, e)

    # -------------------------------------------------------------------------
    # DELETE
    # -------------------------------------------------------------------------

    async def delete(
        self,
        bucket_name: str,
        key: str,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[None, ObjectStoreError]:
        """Delete one object. Succeeds on status 200 or 204."""
        fields = self._log_fields(bucket_name, key)
        try:
            logger.info("s3.delete.request", **fields)

            response = await run_cancellable(
                partial(self._transport.delete_object, bucket_name, key),
                cancel_token,
            )

            logger.info("s3.delete.response", **fields, status_code=response.status_code)

            if response.status_code in C.DELETE_SUCCESS_STATUSES:
                return Ok(None)

            return Err(ObjectStoreError.status_failure(
                Operation.DELETE, bucket_name, key, response.status_code,
            ))
        except OperationCancelledError:
            return self._cancelled(Operation.DELETE, bucket_name, key)
        except Exception as e:
            return self._transport_failure(Operation.DELETE, bucket_name, key, e)

    async def delete_many(
        self,
        bucket_name: str,
        keys: Sequence[str],
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[None, ObjectStoreError]:
        """
        Delete objects in a single batch request.

        All-or-nothing result: Ok only when the status is 200/204 and the
        provider confirmed every requested key. Otherwise the Err message
        names the keys missing from the provider's deleted list.
        """
        keys = list(keys)
        if not keys:
            return Ok(None)

        fields = self._log_fields(bucket_name, " ".join(keys))
        try:
            logger.info("s3.delete_many.request", **fields)

            response = await run_cancellable(
                partial(self._transport.delete_objects, bucket_name, keys),
                cancel_token,
            )

            logger.info(
                "s3.delete_many.response",
                **fields,
                delete_errors=" ".join(str(e) for e in response.errors),
                deleted_objects=" ".join(response.deleted),
                status_code=response.status_code,
            )

            deleted = set(response.deleted)
            missing = [key for key in dict.fromkeys(keys) if key not in deleted]

            if (
                response.status_code in C.DELETE_SUCCESS_STATUSES
                and not missing
                and not response.errors
            ):
                return Ok(None)

            return Err(ObjectStoreError.partial_delete_failure(
                bucket_name,
                keys,
                missing,
                response.status_code,
                response.errors,
            ))
        except OperationCancelledError:
            return self._cancelled(Operation.DELETE_MANY, bucket_name, keys)
        except Exception as e:
            return self._transport_failure(Operation.DELETE_MANY, bucket_name, keys, e)

    # -------------------------------------------------------------------------
    # URLS
    # -------------------------------------------------------------------------

    def get_url_path(self, bucket_name: str, key: str) -> str:
        """
        Public URL of an object: ``https://s3.<region>.amazonaws.com/<bucket>/<key>``.

        Pure string formatting; the key is not escaped.
        """
        return C.URL_TEMPLATE.format(
            region=self._config.region,
            bucket=bucket_name,
            key=key,
        )

    # -------------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------------

    def _log_fields(self, bucket_name: str, key: str) -> dict[str, Any]:
        return {
            "bucket_name": bucket_name,
            "region": self._config.region,
            "key": key,
        }

    def _transport_failure(
        self,
        operation: Operation,
        bucket_name: str,
        key: Union[str, Sequence[str]],
        exc: Exception,
    ) -> Err[ObjectStoreError]:
        error = ObjectStoreError.transport_failure(operation, bucket_name, key, exc)
        logger.error(
            "s3.request.failed",
            exc_info=exc,
            error_id=error.error_id,
            **error.context,
        )
        return Err(error)

    def _cancelled(
        self,
        operation: Operation,
        bucket_name: str,
        key: Union[str, Sequence[str]],
    ) -> Err[ObjectStoreError]:
        error = ObjectStoreError.cancelled(operation, bucket_name, key)
        logger.info("s3.request.cancelled", error_id=error.error_id, **error.context)
        return Err(error)


class BucketClient:
    """
    Fixed-bucket client: the bucket comes from configuration.

    Example:
        >>> config = ClientConfig(bucket_name="media")
        >>> async with BucketClient.from_config(config) as bucket:
        ...     await bucket.delete("folder/pic.jpg")
    """

    __slots__ = ("_client", "_bucket_name")

    def __init__(self, client: ObjectStoreClient, bucket_name: str) -> None:
        if not bucket_name:
            raise ValueError("bucket_name must be non-empty")
        self._client = client
        self._bucket_name = bucket_name

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[ObjectStorageTransport] = None,
    ) -> BucketClient:
        """
        Raises:
            ValueError: If ``config.bucket_name`` is not set.
        """
        bucket = config.require_bucket()
        if bucket.is_err():
            raise ValueError(bucket.error)
        return cls(ObjectStoreClient(config, transport), bucket.unwrap())

    @classmethod
    def from_env(cls, prefix: str = C.ENV_PREFIX) -> Result[BucketClient, ObjectStoreError]:
        """Like ``ObjectStoreClient.from_env``; ``{prefix}_BUCKET`` is required."""
        config = _config_from_env(prefix)
        if config.is_err():
            return config
        bucket = config.unwrap().require_bucket()
        if bucket.is_err():
            return Err(ObjectStoreError.configuration(
                bucket.error, prefix=prefix, variable=f"{prefix}_BUCKET",
            ))
        return Ok(cls(ObjectStoreClient(config.unwrap()), bucket.unwrap()))

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def client(self) -> ObjectStoreClient:
        return self._client

    async def __aenter__(self) -> BucketClient:
        await self._client.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self._client.close()

    async def add(
        self,
        key: str,
        stream: BinaryIO,
        policy: AccessPolicy = DEFAULT_ACCESS_POLICY,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[str, ObjectStoreError]:
        return await self._client.add(
            self._bucket_name, key, stream, policy, cancel_token=cancel_token,
        )

    async def add_batch(
        self,
        items: Iterable[BatchItem],
        policy: AccessPolicy = DEFAULT_ACCESS_POLICY,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BatchOutcome:
        return await self._client.add_batch(
            self._bucket_name, items, policy, cancel_token=cancel_token,
        )

    async def get(
        self,
        key: str,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[Any, ObjectStoreError]:
        return await self._client.get(self._bucket_name, key, cancel_token=cancel_token)

    async def delete(
        self,
        key: str,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[None, ObjectStoreError]:
        return await self._client.delete(self._bucket_name, key, cancel_token=cancel_token)

    async def delete_many(
        self,
        keys: Sequence[str],
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Result[None, ObjectStoreError]:
        return await self._client.delete_many(
            self._bucket_name, keys, cancel_token=cancel_token,
        )

    def get_url_path(self, key: str) -> str:
        return self._client.get_url_path(self._bucket_name, key)
