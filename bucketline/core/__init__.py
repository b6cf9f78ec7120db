"""
Core module: Type definitions, error taxonomy, cancellation and configuration.

This module provides the foundational abstractions of the facade:
- Result/Either monad for zero-exception control flow
- Error values carrying structured context
- Batch-wide cooperative cancellation
- Configuration management with validation
"""

from bucketline.core.types import (
    Result,
    Ok,
    Err,
    AccessPolicy,
    UploadItem,
    DEFAULT_ACCESS_POLICY,
)
from bucketline.core.errors import (
    ErrorCode,
    Operation,
    ObjectStoreError,
)
from bucketline.core.cancellation import CancellationToken
from bucketline.core.config import ClientConfig

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AccessPolicy",
    "UploadItem",
    "DEFAULT_ACCESS_POLICY",
    "ErrorCode",
    "Operation",
    "ObjectStoreError",
    "CancellationToken",
    "ClientConfig",
]
