"""
Core Type Definitions for the Object Store Facade

Implements the Result/Either monad used by every public operation, plus the
small value types shared by the client and its transports.

Design Principles:
- Failures are values: public operations return Ok/Err, never raise
- Value types are immutable and hashable
- Payload streams are caller-owned; nothing here closes them
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    BinaryIO,
    Callable,
    Generic,
    Literal,
    TypeVar,
    Union,
)

# =============================================================================
# TYPE VARIABLES FOR GENERIC CONTAINERS
# =============================================================================
T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Transform result type


# =============================================================================
# RESULT MONAD: ZERO-EXCEPTION CONTROL FLOW
# =============================================================================
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Success variant of Result monad.

    Immutable container for a successful operation's value: an object URL
    for uploads, a body stream for downloads, None for deletions.
    """

    value: T

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    def unwrap(self) -> T:
        """Extract value. Safe to call after is_ok() check."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return value, ignoring default."""
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply transformation to success value."""
        return Ok(fn(self.value))

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Monadic bind for chaining fallible operations."""
        return fn(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """
    Failure variant of Result monad.

    Carries the full error value (normally an ObjectStoreError) so callers
    can branch on its code or read its context.
    """

    error: E

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    def unwrap(self) -> Any:
        """
        Attempting to unwrap an error is a programming error.

        Raises:
            RuntimeError: Always, with error context
        """
        raise RuntimeError(f"Called unwrap() on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Return default value on error."""
        return default

    def map(self, fn: Callable[[Any], U]) -> Err[E]:
        """No-op on error variant - propagates error unchanged."""
        return self

    def flat_map(self, fn: Callable[[Any], Result[U, E]]) -> Err[E]:
        """Propagate error through monadic chain."""
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Union type for pattern matching
Result = Union[Ok[T], Err[E]]


# =============================================================================
# ACCESS POLICY (CANNED ACL)
# =============================================================================
class AccessPolicy(Enum):
    """
    Canned ACL applied to an object at upload time.

    Values are the literal strings S3 expects in the ``x-amz-acl`` header.
    See https://docs.aws.amazon.com/AmazonS3/latest/dev/acl-overview.html#canned-acl
    """

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"
    AUTHENTICATED_READ = "authenticated-read"
    AWS_EXEC_READ = "aws-exec-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"

    @classmethod
    def parse(cls, value: str) -> Result[AccessPolicy, str]:
        """Parse a wire value or member name (``public-read``, ``PUBLIC_READ``)."""
        normalized = value.strip()
        for policy in cls:
            if normalized == policy.value or normalized.upper() == policy.name:
                return Ok(policy)
        allowed = ", ".join(p.value for p in cls)
        return Err(f"Unknown access policy '{value}', expected one of: {allowed}")


DEFAULT_ACCESS_POLICY = AccessPolicy.PUBLIC_READ


# =============================================================================
# UPLOAD ITEM
# =============================================================================
@dataclass(frozen=True, slots=True)
class UploadItem:
    """
    A single object to upload as part of a batch.

    Attributes:
        key: Object key in the bucket. May contain ``/`` segments
            (``folder/file1.jpg``); it is a storage key, not a path.
        stream: Readable binary stream. Owned by the caller: the client
            reads it but never closes it.
    """

    key: str
    stream: BinaryIO

    @classmethod
    def of(cls, pair: tuple[str, BinaryIO]) -> UploadItem:
        """Build from a ``(key, stream)`` tuple."""
        key, stream = pair
        return cls(key=key, stream=stream)

    def __repr__(self) -> str:
        return f"UploadItem({self.key!r})"
