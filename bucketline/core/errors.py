"""
Error Taxonomy for the Object Store Facade

Design Principles:
- Errors are values carried inside Err, never raised across the public API
- Every error carries structured context (operation, bucket, key or keys)
  instead of mutating the caught exception
- The underlying exception is kept as ``cause`` for root cause analysis

Usage:
    result = await client.add("media", "folder/pic.jpg", stream)
    match result:
        case Ok(url):
            publish(url)
        case Err(error) if error.code is ErrorCode.STATUS_FAILURE:
            handle_status(error.context["status_code"])
        case Err(error):
            log_failure(error.to_dict())
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Iterable, Optional, Sequence
from uuid import uuid4


# =============================================================================
# ERROR CODE ENUMERATION
# =============================================================================
class ErrorCode(Enum):
    """
    Unique error codes for programmatic error handling.

    Codes are grouped by subsystem:
    - 1xxx: Request errors (one round trip to the provider)
    - 2xxx: Batch errors
    - 9xxx: Internal/configuration errors
    """

    # Request errors (1xxx)
    TRANSPORT_FAILURE = 1001
    STATUS_FAILURE = 1002
    CANCELLED = 1003

    # Batch errors (2xxx)
    BATCH_LIMIT_EXCEEDED = 2001
    PARTIAL_DELETE_FAILURE = 2002

    # Internal errors (9xxx)
    CONFIGURATION_ERROR = 9001


class Operation(str, Enum):
    """Object store operation an error is attributed to."""

    ADD = "add"
    ADD_BATCH = "add_batch"
    GET = "get"
    DELETE = "delete"
    DELETE_MANY = "delete_many"


def describe_status(status_code: int) -> str:
    """Render a status code as ``'<code> <phrase>'`` when the code is known."""
    try:
        status = HTTPStatus(status_code)
    except ValueError:
        return str(status_code)
    return f"{status.value} {status.phrase}"


# =============================================================================
# BASE ERROR CLASS
# =============================================================================
@dataclass
class ObjectStoreError(Exception):
    """
    Failure produced by an object store operation.

    Provides common infrastructure for error handling:
    - Unique error ID for correlating a failure with its log lines
    - Error code for programmatic handling
    - Cause chain for root cause analysis
    - Structured context naming the operation and the affected key(s)
    """

    code: ErrorCode
    message: str
    error_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp_ns: int = field(default_factory=time.time_ns)
    cause: Optional[BaseException] = None
    context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def operation(self) -> Optional[str]:
        return self.context.get("operation")

    @property
    def key(self) -> Optional[str]:
        return self.context.get("key")

    @property
    def keys(self) -> tuple[str, ...]:
        """All keys this error concerns (single key operations included)."""
        if "keys" in self.context:
            return tuple(self.context["keys"])
        if "key" in self.context:
            return (self.context["key"],)
        return ()

    def with_context(self, **kwargs: Any) -> ObjectStoreError:
        """Add context to error (returns new instance)."""
        return ObjectStoreError(
            code=self.code,
            message=self.message,
            error_id=self.error_id,
            timestamp_ns=self.timestamp_ns,
            cause=self.cause,
            context={**self.context, **kwargs},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize error to dictionary for logging/API responses."""
        data = {
            "error_id": self.error_id,
            "code": self.code.name,
            "code_value": self.code.value,
            "message": self.message,
            "timestamp_nanos": self.timestamp_ns,
            "context": self.context,
        }
        if self.cause is not None:
            data["cause"] = type(self.cause).__name__
        return data

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code.name}, "
            f"message={self.message!r}, "
            f"error_id={self.error_id!r})"
        )

    # -------------------------------------------------------------------------
    # CONSTRUCTORS
    # -------------------------------------------------------------------------

    @classmethod
    def transport_failure(
        cls,
        operation: Operation,
        bucket_name: str,
        key: str | Sequence[str],
        cause: BaseException,
    ) -> ObjectStoreError:
        """The provider call raised instead of returning a response."""
        context: dict[str, Any] = {
            "operation": operation.value,
            "bucket_name": bucket_name,
        }
        if isinstance(key, str):
            context["key"] = key
        else:
            context["keys"] = list(key)

        error_code = _provider_error_code(cause)
        if error_code:
            context["error_code"] = error_code

        return cls(
            code=ErrorCode.TRANSPORT_FAILURE,
            message=f"{type(cause).__name__}: {cause}",
            cause=cause,
            context=context,
        )

    @classmethod
    def status_failure(
        cls,
        operation: Operation,
        bucket_name: str,
        key: str,
        status_code: int,
    ) -> ObjectStoreError:
        """The provider answered with a status the operation does not accept."""
        verb = "upload" if operation is Operation.ADD else operation.value
        return cls(
            code=ErrorCode.STATUS_FAILURE,
            message=(
                f"Failed to {verb} the object '{key}'. "
                f"HttpStatusCode is '{describe_status(status_code)}'"
            ),
            context={
                "operation": operation.value,
                "bucket_name": bucket_name,
                "key": key,
                "status_code": status_code,
            },
        )

    @classmethod
    def batch_limit_exceeded(cls, count: int, limit: int) -> ObjectStoreError:
        """More objects were submitted than one batch may carry."""
        return cls(
            code=ErrorCode.BATCH_LIMIT_EXCEEDED,
            message=f"Can't upload more than {limit} objects at one time",
            context={
                "operation": Operation.ADD_BATCH.value,
                "count": count,
                "limit": limit,
            },
        )

    @classmethod
    def partial_delete_failure(
        cls,
        bucket_name: str,
        keys: Sequence[str],
        missing_keys: Sequence[str],
        status_code: int,
        errors: Iterable[Any] = (),
    ) -> ObjectStoreError:
        """A batch delete did not confirm every requested key."""
        message = f"HttpStatusCode is '{describe_status(status_code)}'"
        if missing_keys:
            message = (
                f"Failed to delete objects with keys "
                f"'{', '.join(missing_keys)}'. {message}"
            )
        return cls(
            code=ErrorCode.PARTIAL_DELETE_FAILURE,
            message=message,
            context={
                "operation": Operation.DELETE_MANY.value,
                "bucket_name": bucket_name,
                "keys": list(keys),
                "missing_keys": list(missing_keys),
                "status_code": status_code,
                "errors": [str(e) for e in errors],
            },
        )

    @classmethod
    def cancelled(
        cls,
        operation: Operation,
        bucket_name: str,
        key: str | Sequence[str],
    ) -> ObjectStoreError:
        """The shared cancellation signal fired before the call completed."""
        context: dict[str, Any] = {
            "operation": operation.value,
            "bucket_name": bucket_name,
        }
        if isinstance(key, str):
            context["key"] = key
            subject = f"'{key}'"
        else:
            context["keys"] = list(key)
            subject = f"'{', '.join(key)}'"
        return cls(
            code=ErrorCode.CANCELLED,
            message=f"Operation '{operation.value}' on {subject} was cancelled",
            context=context,
        )

    @classmethod
    def configuration(cls, message: str, **context: Any) -> ObjectStoreError:
        """Client configuration does not allow the requested operation."""
        return cls(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            context=context,
        )


def _provider_error_code(cause: BaseException) -> Optional[str]:
    """Extract the S3 error code (``NoSuchKey``, ``AccessDenied``) if present."""
    response = getattr(cause, "response", None)
    if not isinstance(response, dict):
        return None
    return response.get("Error", {}).get("Code")


class OperationCancelledError(Exception):
    """Raised internally when a cancellation token fires mid-request."""
